from .driver import GovernanceDriver
from .driver_factory import DriverFactory, driver
from .instance_id import InstanceIdAllocator, generate_id, next_id, select_last_service_id
from .registration_cache import RegistrationCache
from .consul import ConsulAgent, ConsulDriver, ConsulHealth

__all__ = [
    "ConsulAgent",
    "ConsulDriver",
    "ConsulHealth",
    "DriverFactory",
    "GovernanceDriver",
    "InstanceIdAllocator",
    "RegistrationCache",
    "driver",
    "generate_id",
    "next_id",
    "select_last_service_id",
]
