class RoomControlError(Exception):
    """Base class for errors raised by the room control system."""


class TransportError(RoomControlError):
    """Connecting to, publishing to or subscribing on the broker failed."""


class StorageError(RoomControlError):
    """A query or write against the relational store failed."""


class ValidationError(RoomControlError):
    """An inbound message could not be parsed."""
