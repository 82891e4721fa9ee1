import hashlib
import hmac

from checkcode import SHARED_SECRET, build_signed_body, canonical_query_string, compute_checkcode, sign

FROZEN = 1700000000
TOKEN_FIELDS = {
    'access_token': 't',
    'openId': 'o',
    'userId': '1',
    'apiuser': 'a',
    'operateId': '2',
    'language': 'en',
}


def frozen_clock():
    return FROZEN


def test_canonical_string_for_token_fields():
    signed = sign(TOKEN_FIELDS, clock=frozen_clock)

    assert signed.payload == (
        "access_token=t&apiuser=a&language=en&openId=o&operateId=2&timestamp=1700000000&userId=1"
    )
    expected = hmac.new(SHARED_SECRET.encode(), signed.payload.encode(), hashlib.sha1).hexdigest().upper()
    assert signed.checkcode == expected
    assert signed.full_payload == f"{signed.payload}&checkcode={expected}"
    assert signed.timestamp == FROZEN


def test_sign_is_deterministic_at_fixed_time():
    assert sign(TOKEN_FIELDS, clock=frozen_clock) == sign(TOKEN_FIELDS, clock=frozen_clock)


def test_timestamp_changes_checkcode():
    first = sign(TOKEN_FIELDS, clock=lambda: FROZEN)
    second = sign(TOKEN_FIELDS, clock=lambda: FROZEN + 1)
    assert first.checkcode != second.checkcode


def test_single_character_change_changes_checkcode():
    changed = dict(TOKEN_FIELDS, access_token='u')
    assert sign(TOKEN_FIELDS, clock=frozen_clock).checkcode != sign(changed, clock=frozen_clock).checkcode


def test_keys_sorted_and_timestamp_added():
    signed = sign({'zeta': '1', 'Alpha': '2', 'beta': '3'}, clock=frozen_clock)
    keys = [pair.split('=', 1)[0] for pair in signed.payload.split('&')]

    assert keys == sorted(keys)
    assert len(set(keys)) == len(keys)
    assert 'timestamp' in keys
    # Code-point order puts upper case first.
    assert keys[0] == 'Alpha'


def test_existing_timestamp_is_overwritten():
    fields = {'timestamp': 'stale', 'a': 'b'}
    signed = sign(fields, clock=frozen_clock)

    assert signed.payload == "a=b&timestamp=1700000000"
    assert fields['timestamp'] == 'stale'


def test_missing_values_sign_as_empty_strings():
    signed = sign({'openId': None, 'userId': '1'}, clock=frozen_clock)
    assert signed.payload == "openId=&timestamp=1700000000&userId=1"


def test_values_are_uri_component_encoded():
    canonical = canonical_query_string({'q': "a b&c=d/é!~*'()"})
    assert canonical == "q=a%20b%26c%3Dd%2F%C3%A9!~*'()"


def test_compute_checkcode_is_uppercase_hex():
    checkcode = compute_checkcode("a=b")
    assert len(checkcode) == 40
    assert checkcode == checkcode.upper()
    int(checkcode, 16)


def test_build_signed_body_keeps_fields_and_adds_signature():
    fields = dict(TOKEN_FIELDS, language=None)
    signed = sign(fields, clock=frozen_clock)
    body = build_signed_body(fields, signed)

    assert body['language'] == ""
    assert body['access_token'] == 't'
    assert body['timestamp'] == FROZEN
    assert body['checkcode'] == signed.checkcode
    assert 'payload' not in body
