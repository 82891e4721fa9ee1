"""
Login handshake against the Sunvoy web application.

The login page carries a one-time nonce in a hidden form input. Posting the
credentials with that nonce answers with a 302 and the session cookies; the
redirect is not followed so the cookies can be captured from the raw response.
"""

import enum
import logging

from form_fields import FormFieldExtractor
from http_utils import (
    DEFAULT_REQUEST_TIMEOUT,
    FORM_ENCODED_CONTENT_TYPE,
    RequestError,
    cookie_headers,
    log_request_headers,
    log_response_headers,
    safe_request_handler,
)
from session_store import SessionPersistError, get_set_cookie_headers, parse_set_cookie_headers

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
NONCE_SELECTOR = 'input[name="nonce"]'
HTTP_FOUND = 302

__all__ = [
    'AuthSessionClient',
    'AuthState',
    'AuthenticationError',
    'LoginFailedError',
    'NonceNotFoundError',
    'RequestError',
    'SessionPersistError',
]


class AuthenticationError(Exception):
    """Custom exception for authentication-related errors."""
    pass


class NonceNotFoundError(AuthenticationError):
    """The login page did not yield a nonce."""
    pass


class LoginFailedError(AuthenticationError):
    """The login POST did not answer with a 302."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class AuthState(enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    NONCE_FETCHED = "nonce_fetched"
    LOGGED_IN = "logged_in"


class AuthSessionClient:
    """Drives the nonce + credential login and hands back the session cookie."""

    def __init__(self, http, store, base_url, username, password, timeout=DEFAULT_REQUEST_TIMEOUT):
        """
        Args:
            http (requests.Session): Session used for the HTTP calls
            store (SessionStore): Where the new session cookie is persisted
            base_url (str): Web application origin, e.g. https://challenge.sunvoy.com
            username (str): Login name
            password (str): Login password
            timeout (int): Per-request timeout in seconds
        """
        self.http = http
        self.store = store
        self.base_url = base_url.rstrip('/')
        self.username = username
        self.password = password
        self.timeout = timeout
        self.state = AuthState.UNAUTHENTICATED

    @property
    def login_url(self):
        return f"{self.base_url}{LOGIN_PATH}"

    @safe_request_handler
    def _get_login_page(self, session_cookie):
        headers = cookie_headers(session_cookie)
        log_request_headers(headers, "Login Page GET Headers")
        return self.http.get(self.login_url, headers=headers, timeout=self.timeout)

    @safe_request_handler
    def _post_login(self, payload, headers):
        log_request_headers(headers, "Login POST Headers")
        return self.http.post(
            self.login_url,
            data=payload,
            headers=headers,
            allow_redirects=False,
            timeout=self.timeout
        )

    def fetch_nonce(self, session_cookie=""):
        """Loads the login page and returns the nonce, or None if it cannot be found."""
        logger.info(f"--- Fetching login nonce from: {self.login_url} ---")
        try:
            response = self._get_login_page(session_cookie)
        except RequestError:
            return None

        log_response_headers(response, "Login Page Response Headers")
        nonce = FormFieldExtractor(response.text).get_input_value(NONCE_SELECTOR)
        if not nonce:
            logger.error(f"No nonce input found on login page (status {response.status_code}).")
            return None

        self.state = AuthState.NONCE_FETCHED
        logger.info("Nonce fetched")
        return nonce

    def login(self, nonce):
        """Submits the credentials and returns the new session cookie.

        Raises:
            LoginFailedError: The server answered with anything but a 302
            RequestError: The POST could not be sent
            SessionPersistError: Login succeeded but the cookie could not be saved
        """
        logger.info(f"--- Logging in as {self.username} ---")
        payload = {
            'username': self.username,
            'password': self.password,
            'nonce': nonce,
        }
        headers = {
            'Content-Type': FORM_ENCODED_CONTENT_TYPE,
            'Origin': self.base_url,
            'Referer': self.login_url,
        }
        response = self._post_login(payload, headers)
        log_response_headers(response, "Login POST Response Headers")

        if response.status_code != HTTP_FOUND:
            logger.error(f"Unable to login: {response.status_code} {response.reason}")
            raise LoginFailedError(
                f"Login failed with status {response.status_code} (expected {HTTP_FOUND})",
                status_code=response.status_code
            )

        session_cookie = parse_set_cookie_headers(get_set_cookie_headers(response))
        if not session_cookie:
            logger.warning("Login answered 302 without any Set-Cookie header.")

        self.state = AuthState.LOGGED_IN
        self.store.save(session_cookie)
        logger.info("Logged in")
        return session_cookie
