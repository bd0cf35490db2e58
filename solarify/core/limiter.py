"""Shared SlowAPI limiter and the rate limit decorators used by routes.

Routes decorated with a limit must accept `request: Request`.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)

LOGIN_LIMIT = "10/minute"
WRITE_ENDPOINT_LIMIT = "120/minute"
CONTACT_LIMIT = "5/minute"

limit_auth = limiter.limit(LOGIN_LIMIT)
limit_writes = limiter.limit(WRITE_ENDPOINT_LIMIT)
limit_contact = limiter.limit(CONTACT_LIMIT)
