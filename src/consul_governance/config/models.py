from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, cast

from consul_governance.utils.constant import (
    DEFAULT_CHECK_INTERVAL,
    DEFAULT_CONSUL_URI,
    DEFAULT_DEREGISTER_CRITICAL_SERVICE_AFTER,
    DEFAULT_HTTP_TIMEOUT,
)

_MISSING = object()


def _ensure_mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise TypeError(f"{field_name} must be a mapping")
    return cast(Mapping[str, Any], value)


def _coerce_float(value: Any, field_name: str) -> float:
    if isinstance(value, bool):
        raise TypeError(f"{field_name} must be a float")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        return float(value.strip())
    raise TypeError(f"{field_name} must be a float")


def _coerce_str(value: Any, field_name: str) -> str:
    if isinstance(value, str):
        return value
    return str(value)


def _optional(coerce: Callable[[Any, str], Any]) -> Callable[[Any, str], Any]:
    def _wrapped(value: Any, field_name: str) -> Any:
        if value is None:
            return None
        return coerce(value, field_name)

    return _wrapped


FieldSpec = tuple[str, Callable[[Any, str], Any], str]


def _extract_fields(payload: Mapping[str, Any], specs: Sequence[FieldSpec]) -> dict[str, Any]:
    kwargs: dict[str, Any] = {}
    for name, coerce, label in specs:
        if name in payload:
            kwargs[name] = coerce(payload[name], label)
    return kwargs


def _apply_field_specs(target: Any, specs: Sequence[FieldSpec]) -> None:
    for name, coerce, label in specs:
        setattr(target, name, coerce(getattr(target, name), label))


_CHECK_FIELD_SPECS: tuple[FieldSpec, ...] = (
    ("interval", _coerce_str, "check.interval"),
    (
        "deregister_critical_service_after",
        _coerce_str,
        "check.deregister_critical_service_after",
    ),
)


@dataclass
class CheckConfig:
    """Settings applied to every health check attached at registration time."""

    interval: str = DEFAULT_CHECK_INTERVAL
    deregister_critical_service_after: str = DEFAULT_DEREGISTER_CRITICAL_SERVICE_AFTER

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "CheckConfig":
        if data is None:
            return cls()
        if isinstance(data, cls):
            return data
        payload = _ensure_mapping(data, "check")
        kwargs = _extract_fields(payload, _CHECK_FIELD_SPECS)
        return cls(**kwargs)

    def __post_init__(self) -> None:
        _apply_field_specs(self, _CHECK_FIELD_SPECS)
        if not self.interval.strip():
            raise ValueError("check.interval must not be empty")
        if not self.deregister_critical_service_after.strip():
            raise ValueError("check.deregister_critical_service_after must not be empty")


_CONSUL_FIELD_SPECS: tuple[FieldSpec, ...] = (
    ("uri", _optional(_coerce_str), "consul.uri"),
    ("timeout", _coerce_float, "consul.timeout"),
)


@dataclass
class ConsulDriverConfig:
    uri: str | None = DEFAULT_CONSUL_URI
    timeout: float = DEFAULT_HTTP_TIMEOUT
    check: CheckConfig = field(default_factory=CheckConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "ConsulDriverConfig":
        if data is None:
            return cls()
        if isinstance(data, cls):
            return data
        payload = _ensure_mapping(data, "consul")
        kwargs = _extract_fields(payload, _CONSUL_FIELD_SPECS)
        if "check" in payload:
            kwargs["check"] = CheckConfig.from_dict(payload["check"])
        return cls(**kwargs)

    def __post_init__(self) -> None:
        _apply_field_specs(self, _CONSUL_FIELD_SPECS)
        if not isinstance(self.check, CheckConfig):
            self.check = CheckConfig.from_dict(self.check)  # type: ignore[arg-type]
        if self.timeout <= 0:
            raise ValueError("consul.timeout must be > 0")
        if self.uri is not None and not self.uri.strip():
            self.uri = None


@dataclass
class GovernanceConfig:
    """Root configuration, mirroring the ``services.drivers`` layout."""

    consul: ConsulDriverConfig = field(default_factory=ConsulDriverConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "GovernanceConfig":
        if data is None:
            return cls()
        if isinstance(data, cls):
            return data
        payload = _ensure_mapping(data, "config")
        drivers = payload.get("drivers")
        if drivers is None:
            return cls()
        drivers = _ensure_mapping(drivers, "drivers")
        kwargs: dict[str, Any] = {}
        if "consul" in drivers:
            kwargs["consul"] = ConsulDriverConfig.from_dict(drivers["consul"])
        return cls(**kwargs)

    def __post_init__(self) -> None:
        if not isinstance(self.consul, ConsulDriverConfig):
            self.consul = ConsulDriverConfig.from_dict(self.consul)  # type: ignore[arg-type]

    def to_dict(self) -> dict[str, Any]:
        return {
            "services": {
                "drivers": {
                    "consul": {
                        "uri": self.consul.uri,
                        "timeout": self.consul.timeout,
                        "check": {
                            "interval": self.consul.check.interval,
                            "deregister_critical_service_after": (
                                self.consul.check.deregister_critical_service_after
                            ),
                        },
                    }
                }
            }
        }

    def get(self, key: str, default: Any = None) -> Any:
        """Resolve a dotted key such as ``services.drivers.consul.check.interval``."""
        current: Any = self.to_dict()
        for part in key.split("."):
            if not isinstance(current, Mapping):
                return default
            current = current.get(part, _MISSING)
            if current is _MISSING:
                return default
        if current is None:
            return default
        return current
