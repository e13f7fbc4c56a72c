"""Exception types raised by the mood relay core."""


class MoodRelayError(Exception):
    """Base class for mood relay errors."""


class ValidationError(MoodRelayError):
    """A request was missing required fields or carried malformed values."""


class StoreError(MoodRelayError):
    """Any failure of the underlying submission store."""
