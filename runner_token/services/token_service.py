from __future__ import annotations

from types import ModuleType
from typing import Optional

from aws_lambda_powertools import Logger

from ..config import Settings
from ..errors import ConfigurationError
from ..models import AppCredentials, RunnerToken
from ..utilities import github as github_utils
from .secret_service import SecretService


class TokenService:
    """
    Resolves GitHub App credentials, authenticates as the App installation
    and requests an organization runner token.
    """

    def __init__(
            self,
            settings: Settings,
            logger: Logger,
            secret_service: Optional[SecretService] = None,
            github: ModuleType = github_utils,
    ) -> None:
        self.settings = settings
        self.logger = logger
        self.secret_service = secret_service
        self.github = github

    def resolve_credentials(self) -> AppCredentials:
        s = self.settings
        if s.use_secret_store:
            if self.secret_service is None:
                self.secret_service = SecretService(s, self.logger)
            return self.secret_service.get_credentials()

        if s.private_key is not None:
            private_key = s.private_key.get_secret_value()
        else:
            try:
                private_key = s.private_key_path.read_text(encoding="utf-8")
            except OSError as exc:
                raise ConfigurationError(
                    f"Unable to read private key {s.private_key_path}: {exc}"
                ) from exc
        return AppCredentials(
            organization=s.organization,
            app_id=s.app_id,
            installation_id=s.installation_id,
            private_key=private_key,
        )

    def get_runner_token(self) -> RunnerToken:
        creds = self.resolve_credentials()
        token_type = self.settings.token_type
        api_url = self.settings.github_api_url
        timeout = self.settings.timeout
        log_ctx = {
            "organization": creds.organization,
            "app_id": creds.app_id,
            "installation_id": creds.installation_id,
            "token_type": token_type.value,
        }

        app_jwt = self.github.create_app_jwt(creds.app_id, creds.private_key)
        self.logger.debug("Requesting installation access token", extra=log_ctx)
        access_token = self.github.get_installation_token(
            api_url, app_jwt, creds.installation_id, timeout
        )

        self.logger.debug("Requesting runner token", extra=log_ctx)
        token, expires_at = self.github.create_runner_token(
            api_url, access_token, creds.organization, token_type, timeout
        )
        self.logger.info(
            "Runner token issued", extra={**log_ctx, "expires_at": expires_at}
        )
        return RunnerToken(
            token_type=token_type,
            token=token,
            organization=creds.organization,
            expires_at=expires_at,
        )

    def render(self, runner_token: RunnerToken) -> str:
        return runner_token.render(self.settings.output)
