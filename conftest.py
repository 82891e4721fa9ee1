import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from urllib3._collections import HTTPHeaderDict


def _make_response(status_code=200, text="", json_body=None, set_cookies=(), reason="OK"):
    """Builds a stand-in for requests.Response."""
    raw_headers = HTTPHeaderDict()
    for value in set_cookies:
        raw_headers.add('Set-Cookie', value)

    response = MagicMock()
    response.status_code = status_code
    response.reason = reason
    response.headers = dict(raw_headers)
    response.raw = SimpleNamespace(headers=raw_headers)
    if json_body is not None:
        response.text = json.dumps(json_body)
        response.json.return_value = json_body
    else:
        response.text = text
        response.json.side_effect = json.JSONDecodeError("Expecting value", text or " ", 0)
    return response


@pytest.fixture
def make_response():
    """Factory for fake HTTP responses."""
    return _make_response


@pytest.fixture
def http():
    """Mock requests session."""
    return MagicMock()


@pytest.fixture
def login_page_html():
    return """
    <html><body>
      <form method="post" action="/login">
        <input type="hidden" name="nonce" value="abc123">
        <input name="username"><input name="password" type="password">
      </form>
    </body></html>
    """


@pytest.fixture
def tokens_page_html():
    return """
    <html><body>
      <input id="access_token" type="hidden" value="t">
      <input id="openId" type="hidden" value="o">
      <input id="userId" type="hidden" value="1">
      <input id="apiuser" type="hidden" value="a">
      <input id="operateId" type="hidden" value="2">
      <input id="language" type="hidden" value="en">
    </body></html>
    """
