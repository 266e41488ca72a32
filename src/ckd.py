"""
BIP32 private child key derivation (CKDpriv).

    I    = HMAC-SHA512(c_par, 0x00 || k_par || ser32(i))   hardened
    I    = HMAC-SHA512(c_par, serP(K_par) || ser32(i))     normal
    k_i  = (I_L + k_par) mod n
    c_i  = I_R

Stateless; errors flagged retryable mean "try index + 1".
"""

import hashlib
import hmac
import struct
from typing import Optional, Tuple

from hd_errors import (
    ChildExceedsOrder,
    CurveOrderInvalid,
    InvalidIndex,
    KeyConversionFailed,
    NonPositiveKey,
)

HARDENED_INDEX_BEGIN = 0x80000000


def hmac_sha512(key: bytes, data: bytes) -> bytes:
    return hmac.new(key, data, hashlib.sha512).digest()


def effective_index(index: int, hardened: bool) -> int:
    """Return the 32-bit child number for a (index, hardened) pair."""
    if isinstance(index, bool) or not isinstance(index, int):
        raise InvalidIndex(f"Child index must be an integer, got {type(index).__name__}")
    if not 0 <= index < HARDENED_INDEX_BEGIN:
        raise InvalidIndex(f"Child index {index} out of range [0, {HARDENED_INDEX_BEGIN - 1}]")
    return index + HARDENED_INDEX_BEGIN if hardened else index


def child_key_material(
    parent_privkey: bytes,
    parent_chaincode: bytes,
    parent_pubkey: Optional[bytes],
    index: int,
    hardened: bool,
) -> bytes:
    """Return the 64-byte HMAC output I for the given child."""
    i_bytes = struct.pack(">I", effective_index(index, hardened))
    if hardened:
        data = b"\x00" + parent_privkey + i_bytes
    else:
        if parent_pubkey is None:
            raise ValueError("Non-hardened derivation needs the parent public key")
        data = parent_pubkey + i_bytes
    return hmac_sha512(parent_chaincode, data)


def _key_to_int(key: bytes, which: str) -> int:
    if not isinstance(key, (bytes, bytearray)) or len(key) != 32:
        raise KeyConversionFailed(f"Could not convert {which} to number")
    value = int.from_bytes(key, "big")
    if value <= 0:
        raise NonPositiveKey(f"Converted number from {which} is not positive")
    return value


def collate_keys(child_material: bytes, parent_privkey: bytes, curve_order: int) -> bytes:
    """Combine I_L with the parent key modulo the curve order."""
    child = _key_to_int(child_material, "child private key")
    parent = _key_to_int(parent_privkey, "parent private key")

    if curve_order <= 0:
        raise CurveOrderInvalid("Curve order (n) is not positive")
    if child >= curve_order:
        raise ChildExceedsOrder("Child key exceeds curve order (n)")

    collated = (child + parent) % curve_order
    if collated == 0:
        raise NonPositiveKey("Derived child private key is zero")
    return collated.to_bytes(32, "big")


def derive_child_key(
    parent_privkey: bytes,
    parent_chaincode: bytes,
    parent_pubkey: Optional[bytes],
    curve_order: int,
    index: int,
    hardened: bool,
) -> Tuple[bytes, bytes]:
    """
    Derive (child private key, child chain code) from a parent.

    parent_pubkey is the compressed public key of parent_privkey; it may be
    None for hardened derivation.
    """
    I = child_key_material(parent_privkey, parent_chaincode, parent_pubkey, index, hardened)
    return collate_keys(I[:32], parent_privkey, curve_order), I[32:]
