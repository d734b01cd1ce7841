"""Exceptions raised by the CORS policy layer."""


class InvalidCorsOptions(ValueError):
    """Raised when a CORS policy contains a value of an unsupported shape."""
