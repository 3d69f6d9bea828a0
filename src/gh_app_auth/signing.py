"""Build and sign the JSON Web Tokens that authenticate a GitHub App."""

from __future__ import annotations

import time

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from jwt.algorithms import RSAAlgorithm
from jwt.utils import base64url_encode

from .errors import CryptoError
from .utils import encode_json_base64url

DEFAULT_JWT_EXPIRES_IN_SECONDS = 9 * 60
CLOCK_SKEW_SECONDS = 60

_RS256 = RSAAlgorithm(RSAAlgorithm.SHA256)
_HEADER = {"alg": "RS256", "typ": "JWT"}


def create_jwt(
    app_id: int,
    private_key: str,
    expires_in_seconds: int = DEFAULT_JWT_EXPIRES_IN_SECONDS,
) -> str:
    """Return an RS256 JWT identifying the GitHub App ``app_id``.

    ``iat`` is backdated to tolerate clock drift between this host and GitHub.
    A new token is produced on every call.
    """

    now = int(time.time())
    payload = {
        "iat": now - CLOCK_SKEW_SECONDS,
        "exp": now + expires_in_seconds,
        "iss": app_id,
    }

    signing_input = f"{encode_json_base64url(_HEADER)}.{encode_json_base64url(payload)}"

    try:
        key = _RS256.prepare_key(private_key)
        if not isinstance(key, RSAPrivateKey):
            raise TypeError(f"expected an RSA private key, got {type(key).__name__}")
        signature = _RS256.sign(signing_input.encode("utf-8"), key)
    except Exception as exc:  # PyJWT and cryptography raise several unrelated types.
        raise CryptoError("Unable to sign JWT with the provided private key") from exc

    return f"{signing_input}.{base64url_encode(signature).decode('ascii')}"
