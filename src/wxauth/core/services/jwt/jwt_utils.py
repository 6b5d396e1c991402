import base64
import binascii
import json
from dataclasses import dataclass
from typing import Any, Final

from wxauth.core.exceptions import TokenInvalid

# ---------------- tunables ----------------
MAX_JWT_CHARS: Final = 4096
MAX_HEADER_BYTES: Final = 1024
MAX_PAYLOAD_BYTES: Final = 8 * 1024
_ALLOWED: Final = frozenset(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_."
)  # no '='


# --------------- one-pass prefilter ---------------
def _prefilter_compact_jwt(token: str) -> tuple[str, str, str]:
    if not token or len(token) > MAX_JWT_CHARS:
        raise TokenInvalid("Invalid token size")
    first = second = -1
    for i, ch in enumerate(token):
        if ch not in _ALLOWED:
            raise TokenInvalid("Invalid token characters")
        if ch == ".":
            if first < 0:
                first = i
            elif second < 0:
                second = i
            else:  # third dot
                raise TokenInvalid("Invalid token format")
    # require exactly two dots and non-empty segments
    if first <= 0 or second - first <= 1 or second >= len(token) - 1:
        raise TokenInvalid("Invalid token format")
    return token[:first], token[first + 1 : second], token[second + 1 :]


def b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def b64url_decode_canonical(seg: str, what: str, max_bytes: int | None = None) -> bytes:
    """Decode an unpadded base64url segment, rejecting non-canonical spellings.

    Segments whose trailing bits are not zero decode to the same bytes as the
    canonical form, so they are compared after re-encoding.
    """
    pad = (-len(seg)) % 4
    try:
        raw = base64.urlsafe_b64decode((seg + "=" * pad).encode("ascii"))
    except (binascii.Error, ValueError) as e:
        raise TokenInvalid(f"Invalid base64url in {what}") from e
    if b64url_encode(raw) != seg:
        raise TokenInvalid(f"Non-canonical base64url in {what}")
    if max_bytes is not None and len(raw) > max_bytes:
        raise TokenInvalid(f"{what} too large")
    return raw


def _decode_json_object(raw: bytes, what: str) -> dict[str, Any]:
    try:
        obj = json.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise TokenInvalid(f"Non-UTF8 {what}") from e
    except json.JSONDecodeError as e:
        raise TokenInvalid(f"Invalid JSON in {what}") from e
    if not isinstance(obj, dict):
        raise TokenInvalid(f"{what} must be a JSON object")
    return obj


@dataclass(frozen=True)
class JwtPreview:
    header: dict[str, Any]
    claims: dict[str, Any]
    alg: str | None


def preview_jwt(token: str) -> JwtPreview:
    """Split the token and decode header and payload without verifying it."""
    h_seg, p_seg, s_seg = _prefilter_compact_jwt(token)
    header = _decode_json_object(
        b64url_decode_canonical(h_seg, "token header", MAX_HEADER_BYTES),
        "token header",
    )
    claims = _decode_json_object(
        b64url_decode_canonical(p_seg, "token payload", MAX_PAYLOAD_BYTES),
        "token payload",
    )
    b64url_decode_canonical(s_seg, "token signature")
    alg = header.get("alg")
    return JwtPreview(
        header=header,
        claims=claims,
        alg=alg if isinstance(alg, str) else None,
    )
