from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Type, TypeVar

E = TypeVar("E", bound="ChoiceEnum")


class ChoiceEnum(str, Enum):
    """String enum whose values double as the accepted flag values."""

    @classmethod
    def choices(cls) -> list[str]:
        return [member.value for member in cls]

    @classmethod
    def parse(cls: Type[E], value: str | E, flag: str) -> E:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            allowed = " and ".join(cls.choices())
            raise ValueError(
                f"Valid values for {flag} are {allowed}. Received: {value}"
            ) from None


class TokenType(ChoiceEnum):
    REGISTER = "REGISTER"
    REMOVE = "REMOVE"

    @property
    def endpoint(self) -> str:
        if self is TokenType.REGISTER:
            return "registration-token"
        return "remove-token"


class OutputMethod(ChoiceEnum):
    TOKEN = "TOKEN"
    JSON = "JSON"


class SecretStoreAuth(ChoiceEnum):
    ENV = "ENV"
    CLI = "CLI"


class SecretStoreKind(ChoiceEnum):
    SSM = "SSM"
    SECRETSMANAGER = "SECRETSMANAGER"


@dataclass(frozen=True)
class AppCredentials:
    organization: str
    app_id: int
    installation_id: int
    private_key: str

    def __repr__(self) -> str:
        return (
            f"AppCredentials(organization={self.organization!r}, "
            f"app_id={self.app_id}, installation_id={self.installation_id}, "
            "private_key=<redacted>)"
        )


@dataclass
class RunnerToken:
    token_type: TokenType
    token: str
    organization: str
    expires_at: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "token_type": self.token_type.value,
            "token": self.token,
            "organization": self.organization,
        }

    def render(self, output: OutputMethod) -> str:
        if output is OutputMethod.TOKEN:
            return self.token
        if output is OutputMethod.JSON:
            return json.dumps(self.to_dict(), separators=(",", ":"))
        raise ValueError(f"Unknown output method: {output}")
