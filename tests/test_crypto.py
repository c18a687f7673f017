import pytest
from cryptography.hazmat.primitives import hashes, padding as sympadding, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from chaosvpn import crypto
from chaosvpn.crypto import CryptoError


@pytest.fixture(scope="module")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="module")
def private_pem(rsa_key):
    return rsa_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode()


@pytest.fixture(scope="module")
def public_pem(rsa_key):
    return rsa_key.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()


def _aes_encrypt(plain, key, iv):
    padder = sympadding.PKCS7(128).padder()
    padded = padder.update(plain) + padder.finalize()
    enc = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    return enc.update(padded) + enc.finalize()


def test_load_private_key(private_pem, rsa_key):
    key = crypto.load_key(private_pem, True)
    assert key.private_numbers() == rsa_key.private_numbers()


def test_load_public_key(public_pem, rsa_key):
    key = crypto.load_key(public_pem, False)
    assert key.public_numbers() == rsa_key.public_key().public_numbers()


def test_load_public_as_private_fails(public_pem):
    with pytest.raises(CryptoError):
        crypto.load_key(public_pem, True)


def test_load_garbage_key_fails():
    with pytest.raises(CryptoError):
        crypto.load_key("not a pem key", False)


def test_verify_signature_ok(rsa_key, public_pem):
    data = b"peer list contents\n"
    sig = rsa_key.sign(data, padding.PKCS1v15(), hashes.SHA512())
    assert crypto.rsa_verify_signature(data, sig, public_pem) is True


def test_verify_signature_tampered(rsa_key, public_pem):
    data = b"peer list contents\n"
    sig = rsa_key.sign(data, padding.PKCS1v15(), hashes.SHA512())
    assert crypto.rsa_verify_signature(data + b"x", sig, public_pem) is False


def test_verify_signature_wrong_hash(rsa_key, public_pem):
    data = b"peer list contents\n"
    sig = rsa_key.sign(data, padding.PKCS1v15(), hashes.SHA256())
    assert crypto.rsa_verify_signature(data, sig, public_pem) is False


def test_verify_signature_bad_key():
    with pytest.raises(CryptoError):
        crypto.rsa_verify_signature(b"data", b"sig", "garbage")


def test_rsa_decrypt_round_trip(rsa_key, private_pem):
    plain = b"\x01" * 32 + b"\x02" * 16
    ct = rsa_key.public_key().encrypt(
        plain,
        padding.OAEP(mgf=padding.MGF1(algorithm=hashes.SHA1()),
                     algorithm=hashes.SHA1(), label=None),
    )
    assert crypto.rsa_decrypt(ct, private_pem) == plain


def test_rsa_decrypt_wrong_length(private_pem):
    with pytest.raises(CryptoError):
        crypto.rsa_decrypt(b"\x00" * 10, private_pem)


def test_rsa_decrypt_garbage_of_right_length(private_pem):
    with pytest.raises(CryptoError):
        crypto.rsa_decrypt(b"\x00" * 256, private_pem)


def test_aes_round_trip():
    key = bytes(range(32))
    iv = bytes(range(16))
    plain = b"some configuration data that spans several blocks of AES"
    ct = _aes_encrypt(plain, key, iv)
    assert crypto.aes_decrypt(ct, key, iv) == plain


def test_aes_empty_plaintext_round_trip():
    key = b"k" * 32
    iv = b"i" * 16
    ct = _aes_encrypt(b"", key, iv)
    assert len(ct) == 16
    assert crypto.aes_decrypt(ct, key, iv) == b""


def test_aes_wrong_key_size():
    with pytest.raises(CryptoError):
        crypto.aes_decrypt(b"\x00" * 16, b"k" * 16, b"i" * 16)


def test_aes_wrong_iv_size():
    with pytest.raises(CryptoError):
        crypto.aes_decrypt(b"\x00" * 16, b"k" * 32, b"i" * 8)


def test_aes_bad_padding():
    key = b"k" * 32
    iv = b"i" * 16
    ct = _aes_encrypt(b"hello", key, iv)
    with pytest.raises(CryptoError):
        crypto.aes_decrypt(ct, b"z" * 32, iv)


def test_aes_truncated_ciphertext():
    with pytest.raises(CryptoError):
        crypto.aes_decrypt(b"\x00" * 15, b"k" * 32, b"i" * 16)