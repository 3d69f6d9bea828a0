import json
from typing import Any, List, Tuple

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from gh_app_auth import TransportRequest, TransportResponse


class FakeTransport:
    """Transport stub returning queued responses and recording every call."""

    def __init__(self, *responses: Any) -> None:
        self._responses = list(responses)
        self.calls: List[Tuple[str, TransportRequest]] = []

    async def __call__(self, url: str, request: TransportRequest) -> Any:
        self.calls.append((url, request))
        if not self._responses:
            raise AssertionError("No stubbed response available")
        response = self._responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response


def json_response(status: int, payload: Any, status_text: str = "OK") -> TransportResponse:
    return TransportResponse(status=status, status_text=status_text, content=json.dumps(payload))


@pytest.fixture(scope="session")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key_pem(rsa_key) -> str:
    return rsa_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


@pytest.fixture(scope="session")
def public_key_pem(rsa_key) -> str:
    return rsa_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")


@pytest.fixture(scope="session")
def ec_private_key_pem() -> str:
    key = ec.generate_private_key(ec.SECP256R1())
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")
