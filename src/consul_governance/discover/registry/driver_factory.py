import inspect
import logging
from typing import Any

from consul_governance.discover.registry.driver import GovernanceDriver
from consul_governance.exceptions import ComponentRequiredError

logger = logging.getLogger(__name__)


def driver(name: str):
    """Decorator to register a governance driver implementation."""

    def decorator(cls: Any):
        if name:
            DriverFactory.register_driver(name, cls)
            logger.debug("registered governance driver: %s", name)
        else:
            logger.warning("No driver name specified. Skipping registration.")
        return cls

    return decorator


class DriverFactory:
    """Factory class for creating GovernanceDriver instances."""

    driver_classes: dict[str, Any] = {}
    driver_instances: dict[str, GovernanceDriver] = {}

    @classmethod
    def from_driver(cls, driver_type: str, **kwargs: Any) -> GovernanceDriver:
        """Creates (or returns a cached) GovernanceDriver instance.

        Args:
            driver_type: The name the driver was registered under.
        Returns:
            An instance of the GovernanceDriver.
        Raises:
            ComponentRequiredError: No driver is registered under ``driver_type``.
        """
        if driver_type in cls.driver_instances:
            return cls.driver_instances[driver_type]

        driver_class = cls.driver_classes.get(driver_type)
        if not driver_class:
            raise ComponentRequiredError(
                message=f"Governance driver '{driver_type}' is required but not installed.",
                data={"driver": driver_type},
            )

        sig = inspect.signature(driver_class.__init__)
        valid_kwargs = {k: v for k, v in kwargs.items() if k in sig.parameters}
        instance: GovernanceDriver = driver_class(**valid_kwargs)
        cls.driver_instances[driver_type] = instance
        return instance

    @classmethod
    def register_driver(cls, name: str, governance_driver: Any) -> None:
        cls.driver_classes[name] = governance_driver

    @classmethod
    def list_drivers(cls) -> list[str]:
        return sorted(cls.driver_classes)

    @classmethod
    def clear_instances(cls) -> None:
        cls.driver_instances.clear()
