"""slowapi limiter shared by the routes that take credentials."""
from slowapi import Limiter
from slowapi.util import get_remote_address

from jobboard.config import get_settings

# Requests per client IP
LOGIN_LIMIT = "10/minute"
PASSWORD_RESET_LIMIT = "5/minute"

limiter = Limiter(key_func=get_remote_address, enabled=get_settings().rate_limit_enabled)
