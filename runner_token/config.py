from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import boto3
from botocore.config import Config as BotoConfig
from pydantic import Field, SecretStr, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError
from .models import OutputMethod, SecretStoreAuth, SecretStoreKind, TokenType

DEFAULT_API_URL = "https://api.github.com"


class Settings(BaseSettings):
    """Runtime configuration from flags, ``GITHUB_RUNNER_*`` variables or ``.env``."""

    debug: bool = False
    token_type: TokenType = TokenType.REGISTER
    output: OutputMethod = OutputMethod.TOKEN

    organization: Optional[str] = None
    app_id: Optional[int] = Field(None, gt=0)
    installation_id: Optional[int] = Field(None, gt=0)
    private_key_path: Optional[Path] = None
    private_key: Optional[SecretStr] = None

    use_secret_store: bool = False
    secret_store: SecretStoreKind = SecretStoreKind.SSM
    secret_store_auth: SecretStoreAuth = SecretStoreAuth.ENV
    aws_profile: Optional[str] = None
    aws_region: Optional[str] = None
    organization_secret: Optional[str] = None
    app_id_secret: Optional[str] = None
    installation_id_secret: Optional[str] = None
    private_key_secret: Optional[str] = None

    github_api_url: str = DEFAULT_API_URL
    timeout: float = Field(30.0, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="GITHUB_RUNNER_",
        case_sensitive=False,
        env_file=".env",
        extra="ignore",
    )

    @field_validator("token_type", mode="before")
    @classmethod
    def _token_type(cls, v: Any) -> TokenType:
        return TokenType.parse(v, "--token-type")

    @field_validator("output", mode="before")
    @classmethod
    def _output(cls, v: Any) -> OutputMethod:
        return OutputMethod.parse(v, "--output")

    @field_validator("secret_store_auth", mode="before")
    @classmethod
    def _auth(cls, v: Any) -> SecretStoreAuth:
        return SecretStoreAuth.parse(v, "--secret-store-auth")

    @field_validator("secret_store", mode="before")
    @classmethod
    def _store(cls, v: Any) -> SecretStoreKind:
        return SecretStoreKind.parse(v, "--secret-store")

    @field_validator("github_api_url")
    @classmethod
    def _strip_slash(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v:
            raise ValueError("--github-api-url must not be empty")
        return v

    @model_validator(mode="after")
    def _check_sources(self) -> "Settings":
        if self.use_secret_store:
            missing = [
                flag
                for flag, value in (
                    ("--organization-secret", self.organization_secret),
                    ("--app-id-secret", self.app_id_secret),
                    ("--installation-id-secret", self.installation_id_secret),
                    ("--private-key-secret", self.private_key_secret),
                )
                if not value
            ]
            if missing:
                raise ValueError(
                    "Missing secret names for --use-secret-store: " + ", ".join(missing)
                )
            if self.secret_store_auth is SecretStoreAuth.CLI and not self.aws_profile:
                raise ValueError("--secret-store-auth CLI requires --aws-profile")
            return self

        missing = [
            flag
            for flag, value in (
                ("--organization", self.organization),
                ("--app-id", self.app_id),
                ("--installation-id", self.installation_id),
            )
            if not value
        ]
        if missing:
            raise ValueError("Missing required options: " + ", ".join(missing))
        if self.private_key_path is None and self.private_key is None:
            raise ValueError("One of --private-key-path or --private-key is required")
        if self.private_key_path is not None and self.private_key is not None:
            raise ValueError("Use only one of --private-key-path or --private-key")
        return self


def _describe(error: dict) -> str:
    ctx = error.get("ctx") or {}
    if "error" in ctx:
        message = str(ctx["error"])
    else:
        message = error.get("msg", "invalid value")
    field = ".".join(str(p) for p in error.get("loc", ()))
    return f"{field}: {message}" if field and "error" not in ctx else message


def load_settings(**overrides: Any) -> Settings:
    """Build settings, letting non-None ``overrides`` win over the environment."""
    values = {k: v for k, v in overrides.items() if v is not None}
    try:
        return Settings(**values)
    except ValidationError as exc:
        details = "; ".join(_describe(err) for err in exc.errors())
        raise ConfigurationError(f"Invalid configuration: {details}") from exc


_retry_cfg = BotoConfig(retries={"max_attempts": 5, "mode": "standard"})


def session(settings: Settings) -> boto3.Session:
    """Create the boto3 session used to reach the secret store."""
    if settings.secret_store_auth is SecretStoreAuth.CLI:
        return boto3.Session(
            profile_name=settings.aws_profile, region_name=settings.aws_region
        )
    return boto3.Session(region_name=settings.aws_region)


def client(service: str, boto_session: boto3.Session):
    """Create a boto3 client with retry config."""
    return boto_session.client(service, config=_retry_cfg)
