from __future__ import annotations

"""Connector configuration (env → pydantic model).

The same model backs the scheduled import (built from the environment) and the
inbound hook (built from the plugin-style camelCase config object), so both
paths agree on flag parsing and endpoint resolution.
"""

# Standard library
import os
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from brazesync import BRAZE_API_KEY, BRAZE_ENDPOINT, BRAZE_URL
from brazesync.utils.utils import parse_allow_list, parse_flag

__all__ = ["BrazeConfig", "ENDPOINT_URLS", "load_config", "resolve_braze_url"]


# Region code → REST base URL
ENDPOINT_URLS: Dict[str, str] = {
    **{f"US-0{n}": f"https://rest.iad-0{n}.braze.com" for n in range(1, 9)},
    "EU-01": "https://rest.fra-01.braze.eu",
    "EU-02": "https://rest.fra-02.braze.eu",
}

_FLAG_ENV = {
    "import_campaigns": "BRAZE_IMPORT_CAMPAIGNS",
    "import_canvases": "BRAZE_IMPORT_CANVASES",
    "import_custom_events": "BRAZE_IMPORT_CUSTOM_EVENTS",
    "import_kpis": "BRAZE_IMPORT_KPIS",
    "import_feeds": "BRAZE_IMPORT_FEEDS",
    "import_segments": "BRAZE_IMPORT_SEGMENTS",
    "import_sessions": "BRAZE_IMPORT_SESSIONS",
    "import_user_attributes_in_all_events": "BRAZE_IMPORT_USER_ATTRIBUTES_IN_ALL_EVENTS",
}


def resolve_braze_url(braze_url: Optional[str], braze_endpoint: Optional[str]) -> str:
    """Return the REST base URL without a trailing slash.

    An explicit URL wins over a region code.
    """
    if braze_url:
        return braze_url[:-1] if braze_url.endswith("/") else braze_url
    if braze_endpoint:
        try:
            return ENDPOINT_URLS[braze_endpoint.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown Braze endpoint: {braze_endpoint}") from None
    raise ValueError("Either braze_url or braze_endpoint must be configured")


class BrazeConfig(BaseModel):
    """Connector settings for one Braze workspace."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    api_key: str = Field(..., alias="apiKey")
    braze_url: Optional[str] = Field(None, alias="brazeUrl")
    braze_endpoint: Optional[str] = Field(None, alias="brazeEndpoint")

    import_campaigns: bool = Field(False, alias="importCampaigns")
    import_canvases: bool = Field(False, alias="importCanvases")
    import_custom_events: bool = Field(False, alias="importCustomEvents")
    import_kpis: bool = Field(False, alias="importKPIs")
    import_feeds: bool = Field(False, alias="importFeeds")
    import_segments: bool = Field(False, alias="importSegments")
    import_sessions: bool = Field(False, alias="importSessions")

    events_to_export: str = Field("", alias="eventsToExport")
    user_properties_to_export: str = Field("", alias="userPropertiesToExport")
    import_user_attributes_in_all_events: bool = Field(False, alias="importUserAttributesInAllEvents")

    request_timeout: float = Field(5.0, gt=0, description="Per-request timeout (seconds)")
    slow_call_seconds: float = Field(3.0, gt=0, description="Warn when a Braze call takes longer")

    @field_validator(
        "import_campaigns",
        "import_canvases",
        "import_custom_events",
        "import_kpis",
        "import_feeds",
        "import_segments",
        "import_sessions",
        "import_user_attributes_in_all_events",
        mode="before",
    )
    @classmethod
    def _yes_no(cls, value: Any) -> bool:
        return parse_flag(value)

    @field_validator("events_to_export", "user_properties_to_export", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> str:
        return value or ""

    @property
    def base_url(self) -> str:
        return resolve_braze_url(self.braze_url, self.braze_endpoint)

    @property
    def events_allow_list(self) -> List[str]:
        return parse_allow_list(self.events_to_export)

    @property
    def user_properties_allow_list(self) -> List[str]:
        return parse_allow_list(self.user_properties_to_export)


def load_config() -> BrazeConfig:
    """Build the configuration from the process environment."""
    values: Dict[str, Any] = {
        "api_key": BRAZE_API_KEY,
        "braze_url": BRAZE_URL,
        "braze_endpoint": BRAZE_ENDPOINT,
        "events_to_export": os.getenv("BRAZE_EVENTS_TO_EXPORT", ""),
        "user_properties_to_export": os.getenv("BRAZE_USER_PROPERTIES_TO_EXPORT", ""),
    }
    for field_name, env_name in _FLAG_ENV.items():
        values[field_name] = os.getenv(env_name, "No")
    if (timeout := os.getenv("BRAZE_REQUEST_TIMEOUT")):
        values["request_timeout"] = float(timeout)
    if (slow := os.getenv("BRAZE_SLOW_CALL_SECONDS")):
        values["slow_call_seconds"] = float(slow)
    return BrazeConfig(**values)
