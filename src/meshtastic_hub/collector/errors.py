"""Per-step error types of the packet pipeline.

The dispatcher turns each of these into a drop/log decision at the message
boundary; none of them escapes to the MQTT loop.
"""


class CollectorError(Exception):
    """Base class for packet pipeline errors."""


class DecodeError(CollectorError):
    """Envelope or payload bytes do not match the expected protobuf schema."""


class DecryptError(CollectorError):
    """An encrypted packet could not be turned into a valid Data message.

    Wrong channel key, corrupted ciphertext and plaintext that does not parse
    all end up here; callers treat them the same way.
    """


class PersistenceError(CollectorError):
    """Storing a normalized record failed."""
