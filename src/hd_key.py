"""
BIP32 Hierarchical Deterministic extended private keys.

A node holds a private key, a chain code, its depth and a weak reference to
its parent. Derivation always returns a new node; nodes are not mutated
except for binding a curve on a root and caching the public key.
"""

import weakref
from typing import Optional

from ckd import HARDENED_INDEX_BEGIN, derive_child_key, hmac_sha512
from hd_curves import SECP256K1, compressed_public_key, get_curve_params, group_order, validate_curve
from hd_errors import CurveAlreadyBound, CurveNotSet, DepthExceeded, HDKeyError, InvalidSeedLength
from hd_path import format_step, parse_path

SEED_LENGTH = 64
MAX_DEPTH = 9

MIN_MASTER_SEED_LENGTH = 16
MAX_MASTER_SEED_LENGTH = 64


class HDKey:
    """BIP32 Hierarchical Deterministic Key."""

    __slots__ = (
        "_privkey",
        "_chaincode",
        "_depth",
        "_curve",
        "_parent",
        "_child_number",
        "_path",
        "_pubkey",
        "__weakref__",
    )

    def __init__(
        self,
        seed: bytes,
        parent: Optional["HDKey"] = None,
        curve: Optional[str] = None,
        child_number: int = 0,
    ):
        if not isinstance(seed, (bytes, bytearray)) or len(seed) != SEED_LENGTH:
            raise InvalidSeedLength(
                f"Extended key must be constructed from a {SEED_LENGTH * 8}-bit seed"
            )

        depth = parent.depth + 1 if parent is not None else 0
        if depth > MAX_DEPTH:
            raise DepthExceeded(f"Cannot extend key to more than {MAX_DEPTH} depth")

        self._curve = validate_curve(curve) if curve is not None else None
        if parent is not None and self._curve is not None:
            bound = parent.get_curve()
            if bound is not None and bound != self._curve:
                raise CurveAlreadyBound(f"Cannot change elliptic curve of extended key bound to {bound}")
        self._privkey = bytes(seed[:32])
        self._chaincode = bytes(seed[32:])
        self._depth = depth
        self._parent = weakref.ref(parent) if parent is not None else None
        self._child_number = child_number
        if parent is None:
            self._path = "m"
        else:
            hardened = child_number >= HARDENED_INDEX_BEGIN
            index = child_number - HARDENED_INDEX_BEGIN if hardened else child_number
            self._path = f"{parent.path}/{format_step(index, hardened)}"
        self._pubkey = None

    @classmethod
    def from_seed(cls, seed: bytes, curve: Optional[str] = None) -> "HDKey":
        """Root node from 64 bytes: private key || chain code."""
        return cls(seed, curve=curve)

    @classmethod
    def from_master_seed(cls, seed: bytes, curve: str = SECP256K1) -> "HDKey":
        """
        Root node from a 128 to 512 bit seed, per BIP32 master key generation.

        I = HMAC-SHA512(curve seed key, seed), repeated over I while I_L is
        not a valid private key (SLIP-0010).
        """
        if not isinstance(seed, (bytes, bytearray)) or not (
            MIN_MASTER_SEED_LENGTH <= len(seed) <= MAX_MASTER_SEED_LENGTH
        ):
            raise InvalidSeedLength(
                f"Master seed must be {MIN_MASTER_SEED_LENGTH * 8} to "
                f"{MAX_MASTER_SEED_LENGTH * 8} bits"
            )
        params = get_curve_params(curve)
        I = hmac_sha512(params.seed_key, bytes(seed))
        while not 0 < int.from_bytes(I[:32], "big") < params.order:
            I = hmac_sha512(params.seed_key, I)
        return cls(I, curve=params.name)

    def __repr__(self) -> str:
        return f"<HDKey depth={self._depth} path={self._path} curve={self.get_curve()}>"

    @property
    def privkey(self) -> bytes:
        return self._privkey

    @property
    def chaincode(self) -> bytes:
        return self._chaincode

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def parent(self) -> Optional["HDKey"]:
        return self._parent() if self._parent is not None else None

    @property
    def child_number(self) -> int:
        return self._child_number

    @property
    def is_hardened(self) -> bool:
        return self._child_number >= HARDENED_INDEX_BEGIN

    @property
    def path(self) -> str:
        return self._path

    def set_curve(self, curve: str) -> "HDKey":
        name = validate_curve(curve)
        bound = self.get_curve()
        if bound is not None:
            raise CurveAlreadyBound(f"Cannot change elliptic curve of extended key bound to {bound}")
        self._curve = name
        return self

    def get_curve(self) -> Optional[str]:
        """Own curve, else the nearest live ancestor's, else None."""
        if self._curve is not None:
            return self._curve
        parent = self.parent
        if parent is not None:
            return parent.get_curve()
        return None

    def _require_curve(self) -> str:
        curve = self.get_curve()
        if curve is None:
            raise CurveNotSet("Elliptic curve must be set before using curve operations")
        return curve

    @property
    def pubkey(self) -> bytes:
        # Recomputing on a concurrent first access yields the same bytes.
        if self._pubkey is None:
            self._pubkey = compressed_public_key(self._require_curve(), self._privkey)
        return self._pubkey

    def derive_child(self, index: int, hardened: bool = False) -> "HDKey":
        if self._depth >= MAX_DEPTH:
            raise DepthExceeded(f"Cannot extend key to more than {MAX_DEPTH} depth")
        curve = self._require_curve()
        privkey, chaincode = derive_child_key(
            self._privkey,
            self._chaincode,
            None if hardened else self.pubkey,
            group_order(curve),
            index,
            hardened,
        )
        child_number = index + HARDENED_INDEX_BEGIN if hardened else index
        return HDKey(privkey + chaincode, parent=self, curve=curve, child_number=child_number)

    def derive_path(self, path: str) -> "HDKey":
        """Derive from path like m/84'/1776'/0'/0"""
        key = self
        for index, hardened in parse_path(path):
            key = key.derive_child(index, hardened)
        return key

    def derive_next_valid(self, index: int, hardened: bool = False, max_attempts: int = 16) -> "HDKey":
        """
        Derive the child at index, moving on to index + 1 while derivation
        fails with a retryable error. Use child_number on the result to learn
        which index was used.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        attempt = 0
        while True:
            try:
                return self.derive_child(index + attempt, hardened)
            except HDKeyError as e:
                attempt += 1
                if not e.retryable or attempt >= max_attempts:
                    raise
