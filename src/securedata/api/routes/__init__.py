"""API route modules."""

from securedata.api.routes import accounts, health

__all__ = ["accounts", "health"]
