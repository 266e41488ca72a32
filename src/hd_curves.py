"""
Elliptic curve table and public key generation.

secp256k1 keys go through coincurve (libsecp256k1) for speed, the other
curves through ecdsa. Group orders come from the ecdsa curve definitions.
"""

from types import MappingProxyType
from typing import NamedTuple

from coincurve import PublicKey as _CPublicKey
from ecdsa import NIST256p, SECP256k1, SigningKey
from ecdsa.curves import Curve as _ECDSACurve
from ecdsa.keys import MalformedPointError

from hd_errors import InvalidCurve, InvalidPrivateKey

SECP256K1 = "secp256k1"
SECP256R1 = "secp256r1"


class CurveParams(NamedTuple):
    name: str
    order: int
    seed_key: bytes
    ecdsa_curve: _ECDSACurve


CURVES = MappingProxyType(
    {
        SECP256K1: CurveParams(SECP256K1, SECP256k1.order, b"Bitcoin seed", SECP256k1),
        SECP256R1: CurveParams(SECP256R1, NIST256p.order, b"Nist256p1 seed", NIST256p),
    }
)

_ALIASES = MappingProxyType(
    {
        "nist256p1": SECP256R1,
        "prime256v1": SECP256R1,
        "p-256": SECP256R1,
    }
)


def validate_curve(curve_id: str) -> str:
    """Return the canonical identifier for curve_id or raise InvalidCurve."""
    if not isinstance(curve_id, str):
        raise InvalidCurve(f"Cannot use an invalid elliptic curve: {curve_id!r}")
    name = curve_id.strip().lower()
    name = _ALIASES.get(name, name)
    if name not in CURVES:
        raise InvalidCurve(f"Cannot use an invalid elliptic curve: {curve_id!r}")
    return name


def get_curve_params(curve_id: str) -> CurveParams:
    return CURVES[validate_curve(curve_id)]


def group_order(curve_id: str) -> int:
    return get_curve_params(curve_id).order


def _ecdsa_public_key(scalar: bytes, curve: _ECDSACurve) -> bytes:
    try:
        sk = SigningKey.from_string(scalar, curve=curve)
    except MalformedPointError as e:
        raise InvalidPrivateKey(f"Private key is out of range for {curve.name}") from e
    point = sk.get_verifying_key().pubkey.point
    prefix = b"\x02" if point.y() % 2 == 0 else b"\x03"
    return prefix + point.x().to_bytes(32, "big")


def compressed_public_key(curve_id: str, scalar: bytes) -> bytes:
    """Return the 33-byte SEC1 compressed public key for a 32-byte scalar."""
    params = get_curve_params(curve_id)
    if len(scalar) != 32:
        raise InvalidPrivateKey("Private key must be 32 bytes")
    if params.name == SECP256K1:
        try:
            return _CPublicKey.from_valid_secret(bytes(scalar)).format(compressed=True)
        except ValueError as e:
            raise InvalidPrivateKey(f"Private key is out of range for {SECP256K1}") from e
    return _ecdsa_public_key(bytes(scalar), params.ecdsa_curve)
