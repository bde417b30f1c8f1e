"""
Web server configuration.
"""
from core.config import config

# Web server settings
WEB_HOST = config.web.host
WEB_PORT = config.web.port

VERSION = config.version

# Session cookie
SESSION_COOKIE = "storefront_session"
SESSION_MAX_AGE = config.web.session_max_age
COOKIE_SECURE = config.web.cookie_secure
