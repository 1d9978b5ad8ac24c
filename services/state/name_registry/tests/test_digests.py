"""Unit tests for registry digest derivation helpers."""

from __future__ import annotations

import hashlib

import pytest

from services.state.name_registry.digests import (
    DIGEST_SIZE,
    ZERO_DIGEST,
    coerce_digest,
    derive_child_digest,
    label_digest,
    namehash,
)


def test_derive_child_digest_hashes_leaf_then_parent() -> None:
    """Child keys should be sha256 over leaf bytes followed by parent bytes."""
    parent = bytes([1]) * DIGEST_SIZE
    leaf = bytes([2]) * DIGEST_SIZE

    assert derive_child_digest(parent, leaf) == hashlib.sha256(leaf + parent).digest()
    assert derive_child_digest(parent, leaf) != derive_child_digest(leaf, parent)


def test_derive_child_digest_is_deterministic() -> None:
    """Equal inputs should always yield equal keys."""
    leaf = label_digest("com")
    assert derive_child_digest(ZERO_DIGEST, leaf) == derive_child_digest(
        ZERO_DIGEST, leaf
    )


def test_derive_child_digest_rejects_wrong_sizes() -> None:
    """Inputs shorter than one digest should be rejected."""
    with pytest.raises(ValueError, match="leaf_digest must be exactly 32 bytes"):
        derive_child_digest(ZERO_DIGEST, b"short")


def test_coerce_digest_accepts_bytes_and_hex() -> None:
    """Raw bytes and 0x-prefixed hex should normalize to the same digest."""
    raw = label_digest("example")

    assert coerce_digest(raw) == raw
    assert coerce_digest(raw.hex()) == raw
    assert coerce_digest("0x" + raw.hex().upper()) == raw
    assert coerce_digest(bytearray(raw)) == raw


def test_coerce_digest_accepts_zero_digest() -> None:
    """The all-zero digest is a valid key, distinct from empty input."""
    assert coerce_digest(ZERO_DIGEST) == ZERO_DIGEST
    assert coerce_digest("00" * DIGEST_SIZE) == ZERO_DIGEST


@pytest.mark.parametrize("value", [b"", "", "0x", None])
def test_coerce_digest_reports_empty_input_as_missing(value: object) -> None:
    """Empty inputs should be rejected as missing values."""
    with pytest.raises(ValueError, match="digest is required"):
        coerce_digest(value)


def test_coerce_digest_rejects_malformed_input() -> None:
    """Wrong lengths, non-hex text and foreign types should be rejected."""
    with pytest.raises(ValueError, match="exactly 32 bytes"):
        coerce_digest(b"\x00" * 31)
    with pytest.raises(ValueError, match="64 hex characters"):
        coerce_digest("abcd")
    with pytest.raises(ValueError, match="hexadecimal"):
        coerce_digest("zz" * DIGEST_SIZE)
    with pytest.raises(ValueError, match="bytes or a hex string"):
        coerce_digest(42)


def test_label_digest_normalizes_case_and_whitespace() -> None:
    """Labels should hash in canonical lowercase form."""
    assert label_digest(" COM ") == hashlib.sha256(b"com").digest()


def test_label_digest_rejects_empty_and_dotted_labels() -> None:
    """Labels are single non-empty path segments."""
    with pytest.raises(ValueError, match="must not be empty"):
        label_digest("  ")
    with pytest.raises(ValueError, match="must not contain"):
        label_digest("a.b")


def test_namehash_folds_labels_right_to_left() -> None:
    """Dotted names should derive through each ancestor from the root."""
    tld = derive_child_digest(ZERO_DIGEST, label_digest("xlm"))
    expected = derive_child_digest(tld, label_digest("alice"))

    assert namehash("xlm") == tld
    assert namehash("alice.xlm") == expected
    assert namehash("") == ZERO_DIGEST
