import pytest
from ecdsa import NIST256p, SECP256k1

from hd_curves import (
    CURVES,
    SECP256K1,
    SECP256R1,
    _ecdsa_public_key,
    compressed_public_key,
    group_order,
    validate_curve,
)
from hd_errors import InvalidCurve, InvalidPrivateKey

from conftest import TV1_MASTER_PRIVKEY

SECP256K1_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
SECP256R1_ORDER = 0xFFFFFFFF00000000FFFFFFFFFFFFFFFFBCE6FAADA7179E84F3B9CAC2FC632551


@pytest.mark.parametrize(
    "name,expected",
    [
        ("secp256k1", SECP256K1),
        ("SECP256K1", SECP256K1),
        ("secp256r1", SECP256R1),
        ("nist256p1", SECP256R1),
        ("prime256v1", SECP256R1),
        ("P-256", SECP256R1),
    ],
)
def test_validate_curve(name, expected):
    assert validate_curve(name) == expected


@pytest.mark.parametrize("name", ["ed25519", "secp384r1", "", None, 8])
def test_invalid_curve(name):
    with pytest.raises(InvalidCurve):
        validate_curve(name)


def test_group_order():
    assert group_order(SECP256K1) == SECP256K1_ORDER
    assert group_order(SECP256R1) == SECP256R1_ORDER


def test_curve_table_is_read_only():
    with pytest.raises(TypeError):
        CURVES["ed25519"] = CURVES[SECP256K1]


def test_secp256k1_public_key():
    pubkey = compressed_public_key(SECP256K1, TV1_MASTER_PRIVKEY)
    assert pubkey.hex() == "0339a36013301597daef41fbe593a02cc513d0b55527ec2df1050e2e8ff49c85c2"


def test_coincurve_and_ecdsa_agree():
    for scalar in (TV1_MASTER_PRIVKEY, (1).to_bytes(32, "big"), (SECP256K1_ORDER - 1).to_bytes(32, "big")):
        assert compressed_public_key(SECP256K1, scalar) == _ecdsa_public_key(scalar, SECP256k1)


def test_generator_public_key():
    pubkey = compressed_public_key(SECP256R1, (1).to_bytes(32, "big"))
    g = NIST256p.generator
    assert pubkey[1:] == g.x().to_bytes(32, "big")
    assert pubkey[0] == (2 if g.y() % 2 == 0 else 3)


@pytest.mark.parametrize("curve", [SECP256K1, SECP256R1])
@pytest.mark.parametrize("scalar", [0, "order", "order+1"])
def test_scalar_out_of_range(curve, scalar):
    order = group_order(curve)
    value = {"order": order, "order+1": order + 1}.get(scalar, scalar)
    with pytest.raises(InvalidPrivateKey):
        compressed_public_key(curve, value.to_bytes(32, "big"))


def test_scalar_wrong_length():
    with pytest.raises(InvalidPrivateKey):
        compressed_public_key(SECP256K1, b"\x01" * 31)
