"""REST API for SecureData."""
