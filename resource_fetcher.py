"""
Authenticated reads against the Sunvoy web application and its settings API.

Failures of these reads are tolerated: they are logged and the step returns a
default value so the run still produces output.
"""

import json
import logging

from checkcode import build_signed_body, sign
from form_fields import FormFieldExtractor
from http_utils import (
    DEFAULT_REQUEST_TIMEOUT,
    JSON_CONTENT_TYPE,
    RequestError,
    cookie_headers,
    log_request_headers,
    log_response_headers,
    safe_request_handler,
)

logger = logging.getLogger(__name__)

USERS_PATH = "/api/users"
TOKENS_PATH = "/settings/tokens"
SETTINGS_API_PATH = "/api/settings"

TOKEN_FIELDS = ('access_token', 'openId', 'userId', 'apiuser', 'operateId', 'language')


def _is_success(response):
    return 200 <= response.status_code < 300


def _parse_json(response, description):
    """Parses a JSON body, logging and returning None if it is not JSON."""
    try:
        return response.json()
    except (json.JSONDecodeError, ValueError) as e:
        logger.error(f"{description} response is not valid JSON: {e}")
        logger.debug(f"Response snippet: {response.text[:500]}")
        return None


class ResourceFetcher:
    """Reads the user list, the token settings page and the signed current-user profile."""

    def __init__(self, http, base_url, api_base_url, timeout=DEFAULT_REQUEST_TIMEOUT):
        self.http = http
        self.base_url = base_url.rstrip('/')
        self.api_base_url = api_base_url.rstrip('/')
        self.timeout = timeout

    @safe_request_handler
    def _post_json(self, url, body, headers):
        log_request_headers(headers, f"POST Request Headers for {url}")
        return self.http.post(url, data=json.dumps(body), headers=headers, timeout=self.timeout)

    @safe_request_handler
    def _get(self, url, headers):
        log_request_headers(headers, f"GET Request Headers for {url}")
        return self.http.get(url, headers=headers, timeout=self.timeout)

    def fetch_user_list(self, session_cookie):
        """POSTs an empty JSON object to the user list endpoint.

        Returns:
            The parsed JSON body (a list of user records), [] if the call failed
        """
        url = f"{self.base_url}{USERS_PATH}"
        logger.info(f"--- Fetching user list from: {url} ---")
        headers = {'Content-Type': JSON_CONTENT_TYPE, **cookie_headers(session_cookie)}

        try:
            response = self._post_json(url, {}, headers)
        except RequestError:
            return []

        log_response_headers(response, "User List Response Headers")
        if not _is_success(response):
            logger.error(f"Failed to fetch users: {response.status_code}")

        users = _parse_json(response, "User list")
        if users is None:
            return []
        logger.info("User list fetched")
        return users

    def fetch_token_fields(self, session_cookie):
        """Reads the six token inputs from the settings page.

        Returns:
            dict: field name to value; missing inputs map to None. None if the page could not be loaded.
        """
        url = f"{self.base_url}{TOKENS_PATH}"
        logger.info(f"--- Fetching token settings from: {url} ---")

        try:
            response = self._get(url, cookie_headers(session_cookie))
        except RequestError:
            return None

        log_response_headers(response, "Token Settings Response Headers")
        if not _is_success(response):
            logger.error(f"Failed to fetch token settings: {response.status_code}")

        extractor = FormFieldExtractor(response.text)
        fields = extractor.get_input_values({name: f"#{name}" for name in TOKEN_FIELDS})
        missing = [name for name, value in fields.items() if value is None]
        if missing:
            logger.warning(f"Token settings page is missing fields: {', '.join(missing)}")
        return fields

    def fetch_current_user(self, body):
        """POSTs the signed body to the settings API. No session cookie is sent.

        Returns:
            The parsed JSON body, None if the call failed
        """
        url = f"{self.api_base_url}{SETTINGS_API_PATH}"
        logger.info(f"--- Fetching current user from: {url} ---")

        try:
            response = self._post_json(url, body, {'Content-Type': JSON_CONTENT_TYPE})
        except RequestError:
            return None

        log_response_headers(response, "Current User Response Headers")
        if not _is_success(response):
            logger.error(f"Failed to fetch current user: {response.status_code}")

        current_user = _parse_json(response, "Current user")
        if current_user is not None:
            logger.info("Auth user fetched")
        return current_user

    def fetch_signed_current_user(self, session_cookie, signer=sign):
        """Reads the token fields, signs them and fetches the current user with the result."""
        fields = self.fetch_token_fields(session_cookie)
        if fields is None:
            logger.error("No token fields available. Skipping current user fetch.")
            return None

        signed = signer(fields)
        logger.debug(f"Signed token fields at {signed.timestamp}, checkcode {signed.checkcode}")
        return self.fetch_current_user(build_signed_body(fields, signed))
