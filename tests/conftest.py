from __future__ import annotations

import io
import json
import os
from pathlib import Path

import pytest
from aws_lambda_powertools import Logger
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep the developer's ``GITHUB_RUNNER_*`` variables and ``.env`` out of tests."""

    for key in list(os.environ):
        if key.upper().startswith("GITHUB_RUNNER_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key_pem(rsa_key: rsa.RSAPrivateKey) -> str:
    return rsa_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


@pytest.fixture
def private_key_file(tmp_path: Path, private_key_pem: str) -> Path:
    path = tmp_path / "app.pem"
    path.write_text(private_key_pem, encoding="utf-8")
    return path


@pytest.fixture
def logger() -> Logger:
    return Logger(service="github-runner-token-tests", level="WARNING")


class FakeGitHub:
    """Stands in for ``urllib.request.urlopen`` and records each request."""

    def __init__(self, responses: dict[str, object]) -> None:
        self.responses = responses
        self.requests: list[dict[str, object]] = []

    def __call__(self, req, timeout=None):
        self.requests.append(
            {
                "url": req.full_url,
                "method": req.get_method(),
                "authorization": req.get_header("Authorization"),
                "timeout": timeout,
            }
        )
        for suffix, body in self.responses.items():
            if req.full_url.endswith(suffix):
                if isinstance(body, Exception):
                    raise body
                return io.BytesIO(json.dumps(body).encode())
        raise AssertionError(f"unexpected request to {req.full_url}")


@pytest.fixture
def fake_github(monkeypatch: pytest.MonkeyPatch):
    def install(responses: dict[str, object]) -> FakeGitHub:
        fake = FakeGitHub(responses)
        monkeypatch.setattr("urllib.request.urlopen", fake)
        return fake

    return install
