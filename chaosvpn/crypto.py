"""RSA signature checks and RSA/AES decryption of master data."""

from __future__ import annotations

from typing import Union

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, padding as sympadding, serialization
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from . import log

AES_KEY_LENGTH = 32
AES_IV_LENGTH = 16

BytesLike = Union[bytes, bytearray, memoryview]


class CryptoError(Exception):
    """Raised when a key cannot be loaded or data cannot be decrypted."""


def _as_bytes(value: Union[str, BytesLike]) -> bytes:
    if isinstance(value, str):
        return value.encode()
    return bytes(value)


def load_key(key: Union[str, bytes], is_private: bool):
    """Load a PEM encoded private or public key."""
    pem = _as_bytes(key)
    try:
        if is_private:
            return serialization.load_pem_private_key(pem, password=None)
        return serialization.load_pem_public_key(pem)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        log.err("crypto_load_key: loading and parsing key failed")
        log.err("openssl returned error: %s", exc)
        raise CryptoError("loading and parsing key failed") from exc


def rsa_verify_signature(data: BytesLike, signature: BytesLike, pubkey: Union[str, bytes]) -> bool:
    """Check a SHA-512 signature of data against a PEM public key.

    Returns False if the signature does not match; raises CryptoError if
    the key cannot be loaded.
    """
    try:
        key = load_key(pubkey, False)
    except CryptoError:
        log.err("crypto_verify_signature: key loading failed")
        raise

    payload = bytes(data)
    sig = bytes(signature)
    try:
        if isinstance(key, rsa.RSAPublicKey):
            key.verify(sig, payload, padding.PKCS1v15(), hashes.SHA512())
        elif isinstance(key, ec.EllipticCurvePublicKey):
            key.verify(sig, payload, ec.ECDSA(hashes.SHA512()))
        else:
            raise CryptoError("unsupported public key type")
    except InvalidSignature:
        log.err("crypto_verify_signature: signature verify failed, "
                "received bogus data from backend.")
        return False
    return True


def rsa_decrypt(ciphertext: BytesLike, privkey: Union[str, bytes]) -> bytes:
    """Decrypt an RSA-OAEP encrypted block with a PEM private key."""
    try:
        key = load_key(privkey, True)
    except CryptoError:
        log.err("crypto_rsa_decrypt: key loading failed.")
        raise
    if not isinstance(key, rsa.RSAPrivateKey):
        raise CryptoError("private key is not an RSA key")

    data = bytes(ciphertext)
    key_size = (key.key_size + 7) // 8
    if len(data) != key_size:
        log.err("crypto_rsa_decrypt: ciphertext should match length of key (%d vs %d).",
                len(data), key_size)
        raise CryptoError(
            f"ciphertext should match length of key ({len(data)} vs {key_size})")

    try:
        return key.decrypt(
            data,
            padding.OAEP(mgf=padding.MGF1(algorithm=hashes.SHA1()),
                         algorithm=hashes.SHA1(), label=None),
        )
    except ValueError as exc:
        log.err("crypto_rsa_decrypt: EVP_PKEY_decrypt() failed.")
        raise CryptoError("rsa decrypt failed") from exc


def aes_decrypt(ciphertext: BytesLike, key: BytesLike, iv: BytesLike) -> bytes:
    """Decrypt AES-256-CBC data with PKCS#7 padding."""
    key_bytes = bytes(key)
    iv_bytes = bytes(iv)
    if len(key_bytes) != AES_KEY_LENGTH:
        log.err("crypto_aes_decrypt: invalid key size (%d vs expected %d)",
                len(key_bytes), AES_KEY_LENGTH)
        raise CryptoError(
            f"invalid key size ({len(key_bytes)} vs expected {AES_KEY_LENGTH})")
    if len(iv_bytes) != AES_IV_LENGTH:
        log.err("crypto_aes_decrypt: invalid iv size (%d vs expected %d)",
                len(iv_bytes), AES_IV_LENGTH)
        raise CryptoError(
            f"invalid iv size ({len(iv_bytes)} vs expected {AES_IV_LENGTH})")

    data = bytes(ciphertext)
    decryptor = Cipher(algorithms.AES(key_bytes), modes.CBC(iv_bytes)).decryptor()
    try:
        padded = decryptor.update(data) + decryptor.finalize()
    except ValueError as exc:
        log.err("crypto_aes_decrypt: decrypt failed")
        raise CryptoError("decrypt failed") from exc

    unpadder = sympadding.PKCS7(algorithms.AES.block_size).unpadder()
    try:
        return unpadder.update(padded) + unpadder.finalize()
    except ValueError as exc:
        log.err("crypto_aes_decrypt: decrypt final failed")
        raise CryptoError("decrypt final failed") from exc