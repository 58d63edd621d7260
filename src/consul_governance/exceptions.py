from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class GovernanceException(Exception):
    """Base class for service governance exceptions with a canonical error shape."""

    code: int
    message: str
    data: Any | None = None
    cause: Exception | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", (self.message,))
        if self.cause is not None:
            object.__setattr__(self, "__cause__", self.cause)
            object.__setattr__(self, "__suppress_context__", True)

    def to_error_dict(self) -> dict[str, Any]:
        """Return a dict suitable for logging or CLI output."""
        return {"code": self.code, "message": self.message, "data": self.data}


@dataclass(frozen=True)
class SerializationError(GovernanceException):
    """Raised when a registry response body cannot be decoded."""

    code: int = 1003
    message: str = "Serialization error"


@dataclass(frozen=True)
class ComponentRequiredError(GovernanceException):
    """Raised when the registry integration needed by an operation is not available."""

    code: int = 5001
    message: str = "Component required"


@dataclass(frozen=True)
class RegistryTransportError(GovernanceException):
    """Raised when a registry call does not complete or returns a non-success status."""

    code: int = 5002
    message: str = "Registry transport failure"

    @property
    def status_code(self) -> int | None:
        if isinstance(self.data, dict):
            return self.data.get("status_code")
        return None


__all__ = [
    "GovernanceException",
    "SerializationError",
    "ComponentRequiredError",
    "RegistryTransportError",
]
