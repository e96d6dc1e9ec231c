"""Settings and logging shared by the SDK."""

from pawapay.core.config import Settings, get_settings
from pawapay.core.logging import configure_logging

__all__ = ["Settings", "get_settings", "configure_logging"]
