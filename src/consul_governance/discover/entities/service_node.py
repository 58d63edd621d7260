from __future__ import annotations

from collections.abc import Mapping
from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field

from consul_governance.utils.constant import TAG_GLUE


class ServiceMetadata(BaseModel):
    """Caller-supplied metadata for a registration or discovery request."""
    protocol: str | None = None
    id: str | None = None

    @classmethod
    def from_mapping(cls, metadata: "Mapping[str, Any] | ServiceMetadata | None") -> "ServiceMetadata":
        if metadata is None:
            return cls()
        if isinstance(metadata, cls):
            return metadata
        return cls(protocol=metadata.get("protocol"), id=metadata.get("id"))


class DiscoveredNode(BaseModel):
    """A healthy endpoint of a discovered service."""
    model_config = ConfigDict(frozen=True)

    host: str
    port: int

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


class RegistrationKey(NamedTuple):
    """Cache slot of one registration: two protocols on one host:port are distinct."""
    service_name: str
    protocol: str | None
    host: str
    port: int

    @property
    def tag(self) -> str:
        protocol = "" if self.protocol is None else self.protocol
        return TAG_GLUE.join([self.service_name, self.host, str(self.port), protocol])


class RegistrationPayload(BaseModel):
    """Body of ``PUT /v1/agent/service/register``."""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(alias="Name")
    id: str = Field(alias="ID")
    address: str = Field(alias="Address")
    port: int = Field(alias="Port")
    meta: dict[str, str | None] = Field(default_factory=dict, alias="Meta")
    check: dict[str, str] | None = Field(default=None, alias="Check")

    def to_request_body(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
