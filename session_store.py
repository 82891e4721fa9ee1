"""
Durable storage of the session cookie between runs.
"""

import logging
import os

logger = logging.getLogger(__name__)

COOKIE_FILE = "cookies.txt"


class SessionPersistError(Exception):
    """Raised when the session cookie could not be written to disk.

    Carries the cookie so the current run can continue from memory.
    """

    def __init__(self, message, session_cookie=""):
        super().__init__(message)
        self.session_cookie = session_cookie


class SessionStore:
    """Loads and saves the session cookie as a single opaque text blob."""

    def __init__(self, path=COOKIE_FILE):
        self.path = path

    def load(self):
        """Returns the persisted cookie string, or an empty string if there is none."""
        if not os.path.exists(self.path):
            logger.debug(f"No saved session at {self.path}")
            return ""
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read saved session '{self.path}': {e}. Starting without one.")
            return ""

    def save(self, session_cookie):
        """Overwrites the persisted cookie string."""
        try:
            with open(self.path, 'w', encoding='utf-8') as f:
                f.write(session_cookie)
        except OSError as e:
            logger.error(f"Could not write session to '{self.path}': {e}")
            raise SessionPersistError(f"Could not write session to '{self.path}': {e}", session_cookie) from e
        logger.debug(f"Session saved to {self.path}")


def get_set_cookie_headers(response):
    """Returns every Set-Cookie header of a requests response, unfolded."""
    raw_headers = getattr(response.raw, 'headers', None)
    if raw_headers is not None and hasattr(raw_headers, 'getlist'):
        return list(raw_headers.getlist('Set-Cookie'))
    value = response.headers.get('Set-Cookie')
    return [value] if value else []


def parse_set_cookie_headers(headers):
    """Joins the ``name=value`` pair of each Set-Cookie header with ``; ``.

    Cookie attributes (Path, Expires, HttpOnly, ...) are dropped.
    """
    pairs = []
    for header in headers:
        pair = header.split(';', 1)[0].strip()
        name, sep, value = pair.partition('=')
        if not sep or not name.strip():
            logger.warning(f"Ignoring malformed Set-Cookie header: {header!r}")
            continue
        pairs.append(f"{name.strip()}={value.strip()}")
    return "; ".join(pairs)
