"""Digest derivation for the registry hash tree.

Every node key is either ``ZERO_DIGEST`` (the root) or the output of
``derive_child_digest``. Concatenation order is leaf first, then parent;
swapping it changes every key in the tree.
"""

from __future__ import annotations

import hashlib

DIGEST_SIZE = 32
ZERO_DIGEST = bytes(DIGEST_SIZE)


def derive_child_digest(parent_digest: bytes, leaf_digest: bytes) -> bytes:
    """Return ``sha256(leaf_digest || parent_digest)``."""
    _require_digest(parent_digest, field_name="parent_digest")
    _require_digest(leaf_digest, field_name="leaf_digest")
    return hashlib.sha256(leaf_digest + parent_digest).digest()


def coerce_digest(value: object, *, field_name: str = "digest") -> bytes:
    """Normalize raw bytes or a hex string into one 32-byte digest.

    Hex input may carry a ``0x`` prefix. Empty input is reported as missing,
    anything else that is not exactly 32 bytes as malformed.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
        if len(raw) == 0:
            raise ValueError(f"{field_name} is required")
        _require_digest(raw, field_name=field_name)
        return raw

    if isinstance(value, str):
        text = value.strip().lower()
        if text.startswith("0x"):
            text = text[2:]
        if text == "":
            raise ValueError(f"{field_name} is required")
        if len(text) != DIGEST_SIZE * 2:
            raise ValueError(f"{field_name} must be {DIGEST_SIZE * 2} hex characters")
        try:
            return bytes.fromhex(text)
        except ValueError:
            raise ValueError(f"{field_name} must be hexadecimal") from None

    if value is None:
        raise ValueError(f"{field_name} is required")
    raise ValueError(f"{field_name} must be bytes or a hex string")


def normalize_label(label: str) -> str:
    """Return the canonical form of one name label."""
    normalized = label.strip().lower()
    if normalized == "":
        raise ValueError("label must not be empty")
    if "." in normalized:
        raise ValueError("label must not contain '.'")
    return normalized


def label_digest(label: str) -> bytes:
    """Return the leaf digest for one human-readable label."""
    return hashlib.sha256(normalize_label(label).encode("utf-8")).digest()


def namehash(name: str) -> bytes:
    """Fold a dotted name into its node key, rightmost label first.

    ``namehash("alice.xlm")`` equals
    ``derive_child_digest(derive_child_digest(ZERO_DIGEST, label_digest("xlm")),
    label_digest("alice"))``. The empty name is the root.
    """
    stripped = name.strip()
    if stripped == "":
        return ZERO_DIGEST
    node = ZERO_DIGEST
    for label in reversed(stripped.split(".")):
        node = derive_child_digest(node, label_digest(label))
    return node


def _require_digest(value: bytes, *, field_name: str) -> None:
    if len(value) != DIGEST_SIZE:
        raise ValueError(f"{field_name} must be exactly {DIGEST_SIZE} bytes")
