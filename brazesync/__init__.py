"""Top-level package for the Braze <-> PostHog connector service."""

__all__ = [
    "APP_ENV",
    "BRAZE_API_KEY",
    "BRAZE_ENDPOINT",
    "BRAZE_URL",
    "POSTHOG_HOST",
    "POSTHOG_API_KEY",
]

from dotenv import load_dotenv
import os
load_dotenv()

# Braze REST API
BRAZE_API_KEY = os.environ.get("BRAZE_API_KEY")
BRAZE_ENDPOINT = os.environ.get("BRAZE_ENDPOINT")
BRAZE_URL = os.environ.get("BRAZE_URL")

if not BRAZE_API_KEY:
    raise RuntimeError("BRAZE_API_KEY not configured")

if not BRAZE_ENDPOINT and not BRAZE_URL:
    raise RuntimeError("Braze env vars not configured (BRAZE_ENDPOINT or BRAZE_URL)")

# PostHog capture target for imported series
POSTHOG_HOST = os.environ.get("POSTHOG_HOST", "https://app.posthog.com")
POSTHOG_API_KEY = os.environ.get("POSTHOG_API_KEY")

APP_ENV = os.getenv("APP_ENV", "production")
