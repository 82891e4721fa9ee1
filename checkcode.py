"""
Checkcode signing for the signature-protected settings API.

The API authorizes a request by an HMAC-SHA1 "checkcode" computed over the
request fields, serialized as a sorted, URL-encoded query string that
includes the signing timestamp.
"""

import hashlib
import hmac
import time
from collections import namedtuple
from urllib.parse import quote

SHARED_SECRET = "mys3cr3t"
TIMESTAMP_FIELD = "timestamp"
CHECKCODE_FIELD = "checkcode"

# Characters left unescaped by encodeURIComponent, on top of quote()'s own set.
_URI_COMPONENT_SAFE = "!~*'()"

SignedPayload = namedtuple('SignedPayload', ['payload', 'checkcode', 'full_payload', 'timestamp'])


def _field_value(value):
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def canonical_query_string(fields):
    """Serializes fields as ``key=value`` pairs sorted by key and joined with ``&``."""
    return "&".join(
        f"{key}={quote(_field_value(fields[key]), safe=_URI_COMPONENT_SAFE)}"
        for key in sorted(fields)
    )


def compute_checkcode(canonical, secret=SHARED_SECRET):
    """Uppercase hex HMAC-SHA1 of the canonical string."""
    digest = hmac.new(secret.encode('utf-8'), canonical.encode('utf-8'), hashlib.sha1)
    return digest.hexdigest().upper()


def sign(fields, secret=SHARED_SECRET, clock=time.time):
    """Signs a field map at the current wall-clock second.

    Args:
        fields (Mapping): Field name to value. ``None`` values sign as empty strings.
        secret (str): Shared HMAC secret.
        clock (callable): Returns the current Unix time in seconds.

    Returns:
        SignedPayload: canonical string, checkcode, full payload and timestamp.
    """
    timestamp = int(clock())
    working = dict(fields)
    working[TIMESTAMP_FIELD] = str(timestamp)

    payload = canonical_query_string(working)
    checkcode = compute_checkcode(payload, secret)
    return SignedPayload(
        payload=payload,
        checkcode=checkcode,
        full_payload=f"{payload}&{CHECKCODE_FIELD}={checkcode}",
        timestamp=timestamp,
    )


def build_signed_body(fields, signed):
    """Builds the JSON body for the signed call: fields plus timestamp and checkcode.

    Missing values are sent as empty strings so the body matches what was signed.
    """
    body = {key: _field_value(value) for key, value in fields.items()}
    body[TIMESTAMP_FIELD] = signed.timestamp
    body[CHECKCODE_FIELD] = signed.checkcode
    return body
