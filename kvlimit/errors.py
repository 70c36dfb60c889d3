"""Errors raised by the limiter core.

Storage and decoding failures are kept apart so callers can choose their own
policy (fail open, fail closed, alert) for a corrupt record.
"""


class KVLimitError(Exception):
    """Base class for every error raised by kvlimit."""


class StorageError(KVLimitError):
    """A store get or put did not succeed."""


class DecodeError(KVLimitError):
    """Stored bytes could not be parsed as a window record."""


class TicketRedeemedError(KVLimitError):
    """The ticket has already been used."""
