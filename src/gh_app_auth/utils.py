"""Validation and encoding helpers shared by the GitHub App client."""

from __future__ import annotations

import base64
import binascii
import json
import re
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from jwt.utils import base64url_encode

from .errors import InvalidArgumentError

DEFAULT_API_BASE_URL = "https://api.github.com"
MAX_JWT_EXPIRES_IN_SECONDS = 600

_INTEGER_TEXT = re.compile(r"[+-]?[0-9]+")


def normalize_required_string(value: Any, field_name: str) -> str:
    """Return ``value`` stripped of surrounding whitespace, rejecting blanks."""

    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(f"`{field_name}` must be a non-empty string.")
    return value.strip()


def normalize_optional_string(value: Any, field_name: str) -> Optional[str]:
    """Like :func:`normalize_required_string` but ``None`` passes through."""

    if value is None:
        return None
    return normalize_required_string(value, field_name)


def parse_positive_integer(value: Any, field_name: str) -> int:
    """Coerce ``value`` into a positive integer.

    Integers, integral floats and strings of ASCII decimal digits are
    accepted. Booleans are rejected even though Python treats them as integers.
    """

    error = InvalidArgumentError(f"`{field_name}` must be a positive integer.")

    if isinstance(value, bool):
        raise error

    if isinstance(value, int):
        parsed = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise error
        parsed = int(value)
    elif isinstance(value, str):
        text = value.strip()
        if not _INTEGER_TEXT.fullmatch(text):
            raise error
        parsed = int(text)
    else:
        raise error

    if parsed <= 0:
        raise error
    return parsed


def parse_optional_positive_integer(value: Any, field_name: str) -> Optional[int]:
    if value is None:
        return None
    return parse_positive_integer(value, field_name)


def parse_jwt_expiry_window(seconds: Any) -> Optional[int]:
    """Validate a JWT lifetime, returning ``None`` when the default should apply.

    GitHub refuses App JWTs that expire more than ten minutes in the future.
    """

    if seconds is None:
        return None

    window = parse_positive_integer(seconds, "jwt_expires_in_seconds")
    if window > MAX_JWT_EXPIRES_IN_SECONDS:
        raise InvalidArgumentError(
            f"`jwt_expires_in_seconds` must not exceed {MAX_JWT_EXPIRES_IN_SECONDS} seconds."
        )
    return window


def normalize_private_key(raw: Any) -> str:
    """Return PEM text with escaped ``\\n`` sequences turned into line breaks.

    Keys stored in environment variables or CI secrets frequently arrive on a
    single line with literal backslash-n separators.
    """

    key = normalize_required_string(raw, "private_key")
    return key.replace("\\n", "\n")


def normalize_api_base_url(value: Optional[str]) -> str:
    """Return the REST API base URL without trailing slashes."""

    cleaned = normalize_optional_string(value, "api_base_url") or DEFAULT_API_BASE_URL
    return cleaned.rstrip("/")


def encode_json_base64url(value: Mapping[str, Any]) -> str:
    """Serialize ``value`` as compact JSON and encode it as unpadded base64url."""

    serialized = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return base64url_encode(serialized.encode("utf-8")).decode("ascii")


def read_private_key(path: Union[str, Path]) -> str:
    """Load a PEM encoded private key from disk."""

    key_path = Path(path)
    try:
        return key_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise InvalidArgumentError(f"Unable to read key file '{path}': file not found") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise InvalidArgumentError(f"Unable to read key file '{path}': {exc}") from exc


def decode_private_key_base64(encoded_key: str) -> str:
    """Decode a base64 encoded PEM private key."""

    try:
        return base64.b64decode(encoded_key.strip(), validate=True).decode("utf-8")
    except (ValueError, binascii.Error) as exc:
        raise InvalidArgumentError("Unable to decode key from base64") from exc
