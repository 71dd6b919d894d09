from __future__ import annotations

import re
from typing import Optional

from aws_lambda_powertools import Logger
from botocore.exceptions import BotoCoreError, ClientError

from ..config import Settings, client, session
from ..errors import SecretStoreError
from ..models import AppCredentials, SecretStoreKind

INT64_MAX = 2**63 - 1
_DECIMAL = re.compile(r"[+-]?[0-9]+")


def parse_int64(value: str, label: str) -> int:
    """Parse a base-10 int64 ID; GitHub App and installation IDs are positive."""
    text = value.strip()
    if not _DECIMAL.fullmatch(text):
        raise SecretStoreError(
            f"Unable to convert {label} from string to int64: invalid syntax {value!r}"
        )
    number = int(text)
    if not -INT64_MAX - 1 <= number <= INT64_MAX:
        raise SecretStoreError(
            f"Unable to convert {label} from string to int64: {value!r} out of range"
        )
    if number <= 0:
        raise SecretStoreError(f"{label} must be a positive integer, got {number}")
    return number


class SecretService:
    """Reads GitHub App credentials from SSM Parameter Store or Secrets Manager."""

    def __init__(self, settings: Settings, logger: Logger, store_client=None) -> None:
        self.settings = settings
        self.logger = logger
        self._client = store_client

    @property
    def client(self):
        if self._client is None:
            service = (
                "ssm"
                if self.settings.secret_store is SecretStoreKind.SSM
                else "secretsmanager"
            )
            try:
                self._client = client(service, session(self.settings))
            except BotoCoreError as exc:
                raise SecretStoreError(
                    f"Unable to create secret store client: {exc}"
                ) from exc
        return self._client

    def get_secret(self, name: str) -> str:
        self.logger.debug(
            "Fetching secret",
            extra={"secret_name": name, "store": self.settings.secret_store.value},
        )
        try:
            if self.settings.secret_store is SecretStoreKind.SSM:
                resp = self.client.get_parameter(Name=name, WithDecryption=True)
                value: Optional[str] = resp.get("Parameter", {}).get("Value")
            else:
                resp = self.client.get_secret_value(SecretId=name)
                value = resp.get("SecretString")
        except (ClientError, BotoCoreError) as exc:
            raise SecretStoreError(str(exc)) from exc
        if value is None:
            raise SecretStoreError(f"secret {name} has no string value")
        return value

    def _fetch(self, name: str, label: str) -> str:
        try:
            return self.get_secret(name)
        except SecretStoreError as exc:
            raise SecretStoreError(
                f"Unable to get {label} secret from secret store: {exc}"
            ) from exc

    def get_credentials(self) -> AppCredentials:
        s = self.settings
        organization = self._fetch(s.organization_secret, "Organization").strip()
        app_id = parse_int64(self._fetch(s.app_id_secret, "App ID"), "App ID")
        installation_id = parse_int64(
            self._fetch(s.installation_id_secret, "Installation ID"), "Installation ID"
        )
        private_key = self._fetch(s.private_key_secret, "Private Key")
        self.logger.info(
            "Loaded GitHub App credentials from secret store",
            extra={
                "organization": organization,
                "app_id": app_id,
                "installation_id": installation_id,
            },
        )
        return AppCredentials(
            organization=organization,
            app_id=app_id,
            installation_id=installation_id,
            private_key=private_key,
        )
