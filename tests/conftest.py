import pytest

from hd_key import HDKey

# https://github.com/bitcoin/bips/blob/master/bip-0032.mediawiki#test-vector-1
TV1_SEED = bytes.fromhex("000102030405060708090a0b0c0d0e0f")
TV1_MASTER_PRIVKEY = bytes.fromhex("e8f32e723decf4051aefac8e2c93c9c5b214313817cdb01a1494b917c8436b35")
TV1_MASTER_CHAINCODE = bytes.fromhex("873dff81c02f525623fd1fe5167eac3a55a049de3d314bb42ee227ffed37d508")

# https://github.com/bitcoin/bips/blob/master/bip-0032.mediawiki#test-vector-2
TV2_SEED = bytes.fromhex(
    "fffcf9f6f3f0edeae7e4e1dedbd8d5d2cfccc9c6c3c0bdbab7b4b1aeaba8a5a2"
    "9f9c999693908d8a8784817e7b7875726f6c696663605d5a5754514e4b484542"
)


@pytest.fixture
def master_bytes():
    """64-byte private key || chain code of BIP32 test vector 1."""
    return TV1_MASTER_PRIVKEY + TV1_MASTER_CHAINCODE


@pytest.fixture
def root(master_bytes):
    return HDKey.from_seed(master_bytes, curve="secp256k1")


@pytest.fixture
def unbound_root(master_bytes):
    return HDKey(master_bytes)
