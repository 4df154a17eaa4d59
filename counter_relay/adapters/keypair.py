"""
Signer identity for the relay: an Ed25519 keypair resolved once at startup.

Two secret encodings are accepted:

- ``SUI_MNEMONIC``: a BIP-39 English phrase. The phrase is checksum-validated
  with the ``mnemonic`` package, expanded to the standard BIP-39 seed, and the
  Ed25519 key is derived with SLIP-0010 along Sui's default path
  ``m/44'/784'/0'/0'/0'``.
- ``SUI_PRIVATE_KEY``: base64 of one of

    * 65 bytes: a one-byte scheme flag followed by 64 bytes (flag is stripped)
    * 64 bytes: 32-byte seed followed by the 32-byte public key
    * 32 bytes: the seed itself

The mnemonic wins when both are configured. Anything else raises
:class:`IdentityError`; callers treat that as fatal.

Addresses and signatures follow Sui's Ed25519 scheme (flag byte ``0x00``):

    address   = 0x || hex(blake2b-256(0x00 || pubkey))
    signature = base64(0x00 || ed25519(blake2b-256(intent || tx_bytes)) || pubkey)
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import struct
from dataclasses import dataclass, field
from typing import List, Optional

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from mnemonic import Mnemonic

ED25519_FLAG = 0x00
DEFAULT_DERIVATION_PATH = "m/44'/784'/0'/0'/0'"
# TransactionData intent: scope=0, version=0, app_id=0 (Sui)
TRANSACTION_INTENT = bytes((0, 0, 0))

PREFIXED_LEN = 65
BARE_64_LEN = 64
BARE_32_LEN = 32

_HARDENED = 0x80000000


class IdentityError(ValueError):
    """The configured signer secret is missing or unusable."""


def _blake2b_256(data: bytes) -> bytes:
    return hashlib.blake2b(data, digest_size=32).digest()


# ---------- SLIP-0010 (ed25519 supports hardened children only) ----------


def _parse_path(path: str) -> List[int]:
    parts = path.strip().split("/")
    if not parts or parts[0] != "m":
        raise IdentityError(f"Invalid derivation path {path!r}")
    out: List[int] = []
    for p in parts[1:]:
        if not p.endswith("'"):
            raise IdentityError(f"Ed25519 derivation requires hardened segments: {path!r}")
        try:
            idx = int(p[:-1])
        except ValueError:
            raise IdentityError(f"Invalid derivation path segment {p!r}") from None
        out.append(idx + _HARDENED)
    return out


def slip10_master_key(seed: bytes) -> tuple[bytes, bytes]:
    digest = hmac.new(b"ed25519 seed", seed, hashlib.sha512).digest()
    return digest[:32], digest[32:]


def slip10_derive(seed: bytes, path: str = DEFAULT_DERIVATION_PATH) -> bytes:
    """Return the 32-byte Ed25519 private seed at ``path``."""
    key, chain_code = slip10_master_key(seed)
    for index in _parse_path(path):
        data = b"\x00" + key + struct.pack(">I", index)
        digest = hmac.new(chain_code, data, hashlib.sha512).digest()
        key, chain_code = digest[:32], digest[32:]
    return key


# ---------- identity ----------


@dataclass(frozen=True)
class SigningIdentity:
    """Immutable signer. Holds the private key; never logged or serialized."""

    _private_key: Ed25519PrivateKey = field(repr=False)
    public_key: bytes
    address: str

    @classmethod
    def from_seed(cls, seed32: bytes) -> "SigningIdentity":
        if len(seed32) != 32:
            raise IdentityError(f"Ed25519 seed must be 32 bytes, got {len(seed32)}")
        sk = Ed25519PrivateKey.from_private_bytes(seed32)
        pub = sk.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
        address = "0x" + _blake2b_256(bytes([ED25519_FLAG]) + pub).hex()
        return cls(_private_key=sk, public_key=pub, address=address)

    def sign_transaction(self, tx_bytes: bytes) -> str:
        """Serialized Sui signature over the TransactionData intent message."""
        digest = _blake2b_256(TRANSACTION_INTENT + tx_bytes)
        sig = self._private_key.sign(digest)
        return base64.b64encode(bytes([ED25519_FLAG]) + sig + self.public_key).decode("ascii")


def identity_from_mnemonic(phrase: str, path: str = DEFAULT_DERIVATION_PATH) -> SigningIdentity:
    normalized = " ".join(phrase.strip().lower().split())
    if not Mnemonic("english").check(normalized):
        raise IdentityError("SUI_MNEMONIC is not a valid BIP-39 English mnemonic")
    seed = Mnemonic.to_seed(normalized, passphrase="")
    return SigningIdentity.from_seed(slip10_derive(seed, path))


def identity_from_private_key(encoded: str) -> SigningIdentity:
    try:
        raw = base64.b64decode(encoded.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise IdentityError(f"SUI_PRIVATE_KEY is not valid base64: {e}") from e

    if len(raw) == PREFIXED_LEN:
        raw = raw[1:]
    if len(raw) == BARE_64_LEN:
        seed = raw[:32]
    elif len(raw) == BARE_32_LEN:
        seed = raw
    else:
        raise IdentityError(f"Unexpected private key length {len(raw)}")
    return SigningIdentity.from_seed(seed)


def load_identity(mnemonic: Optional[str], private_key: Optional[str]) -> SigningIdentity:
    """Resolve the signer from whichever secret form is configured."""
    if mnemonic:
        return identity_from_mnemonic(mnemonic)
    if private_key:
        return identity_from_private_key(private_key)
    raise IdentityError("Provide either SUI_MNEMONIC or SUI_PRIVATE_KEY")


__all__ = [
    "DEFAULT_DERIVATION_PATH",
    "IdentityError",
    "SigningIdentity",
    "identity_from_mnemonic",
    "identity_from_private_key",
    "load_identity",
    "slip10_derive",
    "slip10_master_key",
]
