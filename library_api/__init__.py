"""Library catalog REST API with JWT authentication and token revocation."""

__version__ = "1.0.0"
