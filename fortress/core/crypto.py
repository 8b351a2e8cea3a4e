"""Cryptographic utilities: audit chain hashing and at-rest encryption.

The canonical audit encoding below is frozen. Changing field names, key
order rules, separators or the timestamp format breaks verification of
every entry appended before the change.
"""

import hashlib
import json
import secrets
from datetime import datetime
from typing import Any

from jose import jwe
from jose.constants import ALGORITHMS
from jose.exceptions import JWEError

from fortress.core.errors import ValidationError

GENESIS_HASH = "0" * 64

CANONICAL_ENCODING_VERSION = 1


def canonical_audit_payload(
    action: str,
    actor_id: str,
    actor_wallet: str,
    target_id: str | None,
    metadata: dict[str, Any],
    timestamp: datetime,
) -> str:
    """Serialize the hashed fields of an audit entry (encoding v1)."""
    payload = {
        "action": action,
        "actor_id": actor_id,
        "actor_wallet": actor_wallet,
        "metadata": metadata,
        "target_id": target_id,
        "timestamp": timestamp.isoformat(),
    }
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def chain_hash(data: str, previous_hash: str) -> str:
    """SHA-256 of the canonical data followed by the predecessor's hash."""
    return hashlib.sha256((data + previous_hash).encode("utf-8")).hexdigest()


def derive_key(raw_key: str) -> bytes:
    """Stretch a configured secret to exactly 32 bytes for AES-256."""
    return hashlib.sha256(raw_key.encode("utf-8")).digest()


class FieldCipher:
    """Encrypts sensitive text fields at rest as compact JWE (dir + A256GCM)."""

    def __init__(self, raw_key: str):
        self._key = derive_key(raw_key)

    def encrypt(self, plaintext: str) -> str:
        token = jwe.encrypt(
            plaintext.encode("utf-8"),
            self._key,
            algorithm=ALGORITHMS.DIR,
            encryption=ALGORITHMS.A256GCM,
        )
        return token.decode("ascii") if isinstance(token, bytes) else token

    def decrypt(self, ciphertext: str) -> str:
        try:
            plaintext = jwe.decrypt(ciphertext, self._key)
        except JWEError as e:
            raise ValidationError("Unable to decrypt stored field") from e
        if plaintext is None:
            raise ValidationError("Unable to decrypt stored field")
        return plaintext.decode("utf-8")


def generate_nonce() -> str:
    """Random 32-byte hex nonce for wallet sign-in challenges."""
    return secrets.token_hex(32)
