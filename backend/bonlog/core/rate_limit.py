"""
Rate limiting configuration.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Create limiter instance
limiter = Limiter(key_func=get_remote_address)

# Format: "count/period" where period can be second(s), minute(s), hour(s), day(s)
SEARCH_LIMIT = "60/minute"  # Search endpoints, per client address
ADMIN_LIMIT = "30/minute"  # Search provisioning and status endpoints
