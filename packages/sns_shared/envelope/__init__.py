"""Result envelopes and request metadata shared by SNS services."""

from .envelope import Envelope, Payload, failure, success
from .meta import EnvelopeKind, EnvelopeMeta, new_meta, validate_meta

__all__ = [
    "Envelope",
    "EnvelopeKind",
    "EnvelopeMeta",
    "Payload",
    "failure",
    "new_meta",
    "success",
    "validate_meta",
]
