"""
Shared HTTP plumbing for the Sunvoy collector.

Builds the requests session used by every step, wraps network failures in a
single exception type and provides header logging with credential redaction.
"""

import functools
import logging
from http.cookiejar import DefaultCookiePolicy

import requests

logger = logging.getLogger(__name__)

# --- Constants ---
DEFAULT_REQUEST_TIMEOUT = 30
DEFAULT_USER_AGENT = 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36'
FORM_ENCODED_CONTENT_TYPE = 'application/x-www-form-urlencoded'
JSON_CONTENT_TYPE = 'application/json'
SENSITIVE_HEADERS = ('cookie', 'set-cookie', 'authorization', 'proxy-authorization')


class RequestError(Exception):
    """Custom exception for request-related errors."""
    pass


def safe_request_handler(func):
    """Decorator for consistent error handling in HTTP requests."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.error(f"Network error in {func.__name__}: {e}")
            raise RequestError(f"Network error in {func.__name__}: {e}") from e
    return wrapper


def _build_default_headers(config):
    """Builds the initial dictionary of request headers."""
    return {
        'User-Agent': config.get('user_agent', DEFAULT_USER_AGENT),
        'Accept-Language': config.get('accept_language', 'en-US,en;q=0.9'),
        'Connection': 'keep-alive',
    }


def setup_session(config):
    """Creates and configures the requests session.

    The cookie jar rejects every cookie: the session credential travels only
    in the explicit Cookie header of each authenticated call.
    """
    session = requests.Session()
    session.headers.update(_build_default_headers(config))
    session.verify = config.get('ssl_verify', True)
    session.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))
    return session


def cookie_headers(session_cookie):
    """Returns the Cookie header for a session string, or nothing when empty."""
    return {'Cookie': session_cookie} if session_cookie else {}


def _redact(key, value):
    if key.lower() in SENSITIVE_HEADERS:
        return f"[{key.title()} Present - Redacted]"
    return value


def log_request_headers(headers_dict, title="Request Headers"):
    """Logs a dictionary of request headers, redacting sensitive ones."""
    logger.debug(f"--- {title} ---")
    if not headers_dict:
        logger.debug("  (No specific headers to display)")
    for key, value in (headers_dict or {}).items():
        logger.debug(f"  {key}: {_redact(key, value)}")


def log_response_headers(response, title="Response Headers"):
    """Logs the headers received in a server response."""
    logger.debug(f"--- {title} (Status: {response.status_code}) ---")
    if not response.headers:
        logger.debug("  (No headers received in response)")
        return
    for key, value in response.headers.items():
        logger.debug(f"  {key}: {_redact(key, value)}")
