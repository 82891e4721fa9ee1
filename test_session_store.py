from unittest.mock import patch

import pytest

from session_store import SessionPersistError, SessionStore, get_set_cookie_headers, parse_set_cookie_headers


def test_load_missing_file_returns_empty(tmp_path):
    assert SessionStore(str(tmp_path / "cookies.txt")).load() == ""


def test_save_then_load(tmp_path):
    store = SessionStore(str(tmp_path / "cookies.txt"))
    store.save("sid=xyz; theme=dark")
    assert store.load() == "sid=xyz; theme=dark"


def test_save_overwrites(tmp_path):
    path = tmp_path / "cookies.txt"
    path.write_text("old=1; stale=2", encoding='utf-8')
    SessionStore(str(path)).save("sid=new")
    assert path.read_text(encoding='utf-8') == "sid=new"


def test_save_failure_raises_with_cookie(tmp_path):
    store = SessionStore(str(tmp_path / "cookies.txt"))
    with patch("builtins.open", side_effect=PermissionError("read-only")):
        with pytest.raises(SessionPersistError) as excinfo:
            store.save("sid=xyz")
    assert excinfo.value.session_cookie == "sid=xyz"


def test_unreadable_file_loads_empty(tmp_path):
    path = tmp_path / "cookies.txt"
    path.write_bytes(b"\xff\xfe\x00bad")
    assert SessionStore(str(path)).load() == ""


def test_parse_drops_attributes_and_joins():
    headers = ["a=1; Path=/", "b=2; Path=/; HttpOnly; Expires=Wed, 21 Oct 2026 07:28:00 GMT"]
    assert parse_set_cookie_headers(headers) == "a=1; b=2"


def test_parse_skips_malformed():
    assert parse_set_cookie_headers(["garbage", "sid=xyz"]) == "sid=xyz"


def test_parse_keeps_equals_in_value():
    assert parse_set_cookie_headers(["token=abc==; Secure"]) == "token=abc=="


def test_parse_empty():
    assert parse_set_cookie_headers([]) == ""


def test_get_set_cookie_headers_unfolds_multiple(make_response):
    response = make_response(302, set_cookies=["a=1; Path=/", "b=2; Path=/"])
    assert get_set_cookie_headers(response) == ["a=1; Path=/", "b=2; Path=/"]
