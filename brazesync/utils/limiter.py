"""Shared slowapi limiter.

IP-keyed limit for the API surface. Export hooks are exempt (see
``brazesync.routers.hook_routes``): a pipeline delivers every event from a
handful of hosts, so an IP limit would turn its normal volume into 429s.
"""

import os

from slowapi import Limiter
from slowapi.util import get_remote_address

API_RATE_LIMIT = os.getenv("API_RATE_LIMIT", "600/minute")

limiter = Limiter(key_func=get_remote_address, default_limits=[API_RATE_LIMIT])
