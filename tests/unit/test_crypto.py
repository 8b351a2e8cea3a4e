"""Unit tests for hashing and field encryption."""

import hashlib
from datetime import UTC, datetime

import pytest

from fortress.core.crypto import (
    GENESIS_HASH,
    FieldCipher,
    canonical_audit_payload,
    chain_hash,
    derive_key,
    generate_nonce,
)
from fortress.core.errors import ValidationError

TIMESTAMP = datetime(2024, 5, 1, 12, 30, 0, 123456, tzinfo=UTC)


class TestCanonicalPayload:
    """Test the frozen audit encoding."""

    def test_exact_encoding(self):
        payload = canonical_audit_payload(
            action="TRANSACTION_CREATED",
            actor_id="p-1",
            actor_wallet="0xabc",
            target_id="t-1",
            metadata={"b": 1, "a": "x"},
            timestamp=TIMESTAMP,
        )

        assert payload == (
            '{"action":"TRANSACTION_CREATED","actor_id":"p-1","actor_wallet":"0xabc",'
            '"metadata":{"a":"x","b":1},"target_id":"t-1",'
            '"timestamp":"2024-05-01T12:30:00.123456+00:00"}'
        )

    def test_metadata_key_order_irrelevant(self):
        one = canonical_audit_payload("A", "p", "w", None, {"x": 1, "y": {"b": 2, "a": 1}}, TIMESTAMP)
        two = canonical_audit_payload("A", "p", "w", None, {"y": {"a": 1, "b": 2}, "x": 1}, TIMESTAMP)
        assert one == two

    def test_null_target(self):
        payload = canonical_audit_payload("A", "p", "w", None, {}, TIMESTAMP)
        assert '"target_id":null' in payload

    def test_non_ascii_kept(self):
        payload = canonical_audit_payload("A", "p", "w", None, {"note": "café"}, TIMESTAMP)
        assert "café" in payload


class TestChainHash:
    def test_genesis_hash(self):
        assert GENESIS_HASH == "0" * 64

    def test_chain_hash_is_sha256_of_concatenation(self):
        expected = hashlib.sha256(("data" + GENESIS_HASH).encode()).hexdigest()
        assert chain_hash("data", GENESIS_HASH) == expected

    def test_previous_hash_changes_result(self):
        assert chain_hash("data", GENESIS_HASH) != chain_hash("data", "f" * 64)


class TestFieldCipher:
    """Test at-rest encryption."""

    def test_round_trip(self):
        cipher = FieldCipher("secret")
        assert cipher.decrypt(cipher.encrypt("pay the plumber")) == "pay the plumber"

    def test_ciphertext_hides_plaintext_and_varies(self):
        cipher = FieldCipher("secret")

        first = cipher.encrypt("pay the plumber")
        second = cipher.encrypt("pay the plumber")

        assert "plumber" not in first
        assert first != second

    def test_unicode(self):
        cipher = FieldCipher("secret")
        assert cipher.decrypt(cipher.encrypt("loyer — août")) == "loyer — août"

    def test_wrong_key_fails(self):
        token = FieldCipher("secret").encrypt("pay the plumber")

        with pytest.raises(ValidationError):
            FieldCipher("other-secret").decrypt(token)

    def test_garbage_fails(self):
        with pytest.raises(ValidationError):
            FieldCipher("secret").decrypt("not-a-jwe")

    def test_derive_key_length(self):
        assert len(derive_key("short")) == 32
        assert derive_key("a") != derive_key("b")


class TestNonce:
    def test_nonce_format(self):
        nonce = generate_nonce()
        assert len(nonce) == 64
        int(nonce, 16)

    def test_nonces_unique(self):
        assert generate_nonce() != generate_nonce()
