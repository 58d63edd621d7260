from .client import ConsulAgent, ConsulHealth, ConsulResponse
from .consul import ConsulDriver

__all__ = ["ConsulAgent", "ConsulDriver", "ConsulHealth", "ConsulResponse"]
