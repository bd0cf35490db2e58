"""Core constants: cache key prefixes and shared literal values.

Single source of truth for cache key structure (DRY) and for the
marketplace limits shared by schemas and services.
"""

# Cache key prefixes
CACHE_PREFIX_WEATHER = "weather"
CACHE_PREFIX_RATES = "rates"

# Delimiter for composite keys
CACHE_KEY_SEP = ":"

# RFQ: a homeowner invites between one and three installers
RFQ_MIN_INSTALLERS = 1
RFQ_MAX_INSTALLERS = 3

# Default page size for list endpoints
DEFAULT_PAGE_SIZE = 25
MAX_PAGE_SIZE = 100

# Outbound HTTP identification for third-party APIs
USER_AGENT = "Solarify/1.0 Solar Calculation Platform"
