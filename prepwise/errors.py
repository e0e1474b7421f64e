"""
Exception hierarchy for failures of the external services PrepWise talks to.
"""


class PrepWiseError(Exception):
    """Base class for all PrepWise errors."""


class StoreError(PrepWiseError):
    """The document store rejected or failed a read or write."""


class StructuredGenerationError(PrepWiseError):
    """The model call failed or its reply did not match the requested schema."""


class TransportError(PrepWiseError):
    """The voice session transport could not start or stop a call."""


class AuthError(PrepWiseError):
    """A session token was missing, expired or invalid."""
