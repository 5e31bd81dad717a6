"""SecureData - a personal credential vault service."""

__version__ = "1.0.0"
