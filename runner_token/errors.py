from __future__ import annotations

from typing import Optional


class RunnerTokenError(Exception):
    """Base error for everything the CLI reports to the user."""


class ConfigurationError(RunnerTokenError):
    pass


class SecretStoreError(RunnerTokenError):
    pass


class GitHubAppError(RunnerTokenError):
    pass


class GitHubAPIError(GitHubAppError):
    """A GitHub REST call failed. ``status`` is None for network errors."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status
