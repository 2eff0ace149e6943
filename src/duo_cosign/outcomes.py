"""Remote-service outcomes and the auth request read from the caller."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from duo_cosign.devices import Device


class AuthResult(str, Enum):
    ALLOWED = "allow"
    PENDING = "waiting"
    FAILED = "deny"


class PreauthResult(str, Enum):
    AUTH_REQUIRED = "auth"
    USER_ALLOWED = "allow"
    USER_DENIED = "deny"
    USER_NOT_ENROLLED = "enroll"
    OTHER = "other"

    @classmethod
    def from_api(cls, value: object) -> "PreauthResult":
        for member in cls:
            if member is not cls.OTHER and member.value == value:
                return member
        return cls.OTHER


@dataclass
class AuthRequest:
    user: str
    factor: str
    data: str

    def wipe(self) -> None:
        self.user = ""
        self.factor = ""
        self.data = ""


@dataclass(frozen=True)
class AuthOutcome:
    result: AuthResult
    status: str | None = None
    status_msg: str | None = None
    txid: str | None = None


@dataclass(frozen=True)
class PreauthOutcome:
    result: PreauthResult
    devices: list[Device] = field(default_factory=list)
    status_msg: str | None = None
