"""
Try-on error taxonomy.

Every error carries a user-safe message. The workflow controller converts
them into its single error field; nothing here reaches the HTTP layer raw.
"""


class TryOnError(Exception):
    """Base class for all try-on failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class EncodingError(TryOnError):
    """A local upload could not be read."""


class ConfigurationError(TryOnError):
    """The Gemini credential is missing. Fatal for the attempt."""


class EmptyResponseError(TryOnError):
    """The service answered without a usable image (e.g. safety filtering)."""


class TransportError(TryOnError):
    """The service call itself failed (network, invalid request, outage)."""


class ValidationError(TryOnError):
    """A precondition for generation was not met."""
