from __future__ import annotations

import http.client
import json
import time
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Dict, Optional, Tuple

import jwt
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from .. import __version__
from ..errors import GitHubAPIError, GitHubAppError
from ..models import TokenType

API_VERSION = "2022-11-28"
USER_AGENT = f"github-runner-token/{__version__}"

# GitHub rejects App JWTs that live longer than ten minutes.
JWT_BACKDATE_SECONDS = 60
JWT_LIFETIME_SECONDS = 540


def create_app_jwt(app_id: int, private_key: str, now: Optional[int] = None) -> str:
    """Sign the short-lived JWT that identifies the GitHub App."""
    now = int(time.time()) if now is None else now
    payload = {
        "iat": now - JWT_BACKDATE_SECONDS,
        "exp": now + JWT_LIFETIME_SECONDS,
        "iss": str(app_id),
    }
    try:
        key = serialization.load_pem_private_key(private_key.encode(), password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise GitHubAppError(f"Unable to sign JWT: {exc}") from exc
    if not isinstance(key, rsa.RSAPrivateKey):
        raise GitHubAppError("Unable to sign JWT: private key is not an RSA private key")
    try:
        return jwt.encode(payload, key, algorithm="RS256")
    except jwt.PyJWTError as exc:
        raise GitHubAppError(f"Unable to sign JWT: {exc}") from exc


def _post(url: str, authorization: str, timeout: float) -> Dict[str, Any]:
    req = urllib.request.Request(
        url,
        method="POST",
        headers={
            "Authorization": authorization,
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
            "User-Agent": USER_AGENT,
        },
    )
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            data = json.load(resp)
    except urllib.error.HTTPError as exc:
        raise GitHubAPIError(
            f"{exc.code} {_error_message(exc)} ({url})", status=exc.code
        ) from exc
    except urllib.error.URLError as exc:
        raise GitHubAPIError(f"Request to {url} failed: {exc.reason}") from exc
    except (OSError, http.client.HTTPException) as exc:
        raise GitHubAPIError(f"Request to {url} failed: {exc}") from exc
    except ValueError as exc:
        raise GitHubAPIError(f"Invalid JSON from {url}: {exc}") from exc
    if not isinstance(data, dict):
        raise GitHubAPIError(f"Unexpected response from {url}")
    return data


def _error_message(exc: urllib.error.HTTPError) -> str:
    try:
        body = json.loads(exc.read() or b"{}")
    except (ValueError, OSError):
        return exc.reason or "HTTP error"
    if isinstance(body, dict) and body.get("message"):
        return body["message"]
    return exc.reason or "HTTP error"


def get_installation_token(
    api_url: str, app_jwt: str, installation_id: int, timeout: float = 30
) -> str:
    """Exchange the App JWT for an installation access token."""
    url = f"{api_url}/app/installations/{installation_id}/access_tokens"
    data = _post(url, f"Bearer {app_jwt}", timeout)
    token = data.get("token")
    if not token:
        raise GitHubAPIError(f"No token in response from {url}")
    return token


def create_runner_token(
    api_url: str,
    access_token: str,
    organization: str,
    token_type: TokenType,
    timeout: float = 30,
) -> Tuple[str, Optional[str]]:
    """Request an organization runner token; returns ``(token, expires_at)``."""
    org = urllib.parse.quote(organization, safe="")
    url = f"{api_url}/orgs/{org}/actions/runners/{token_type.endpoint}"
    data = _post(url, f"token {access_token}", timeout)
    token = data.get("token")
    if not token:
        raise GitHubAPIError(f"No token in response from {url}")
    return token, data.get("expires_at")
