"""Exception taxonomy for the round-trip harness."""

from __future__ import annotations


class HarnessError(Exception):
    """Base class for all harness errors."""


class ConfigError(HarnessError):
    """Missing or invalid configuration or schema input."""


class SchemaConflictError(HarnessError):
    """An incompatible schema was registered under an existing subject."""


class NotFoundError(HarnessError):
    """A subject was resolved before it was registered."""


class RegistryError(HarnessError):
    """Schema registry could not be reached or returned an unexpected error."""


class EncodeError(HarnessError):
    """A payload does not match the schema it is encoded with."""


class DecodeError(HarnessError):
    """Bytes are corrupt or were written with a different schema."""


class AdminError(HarnessError):
    """Topic administration failed at the cluster level."""


class SendError(HarnessError):
    """Messages were not acknowledged by the broker."""


class ConsumeError(HarnessError):
    """The consumer lost connectivity or hit a fatal broker error."""


class HarnessStateError(HarnessError):
    """Illegal state machine transition."""
