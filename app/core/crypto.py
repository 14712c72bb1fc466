"""
Symmetric codec for the employee PIN.

Tokens are urlsafe base64 of ``nonce || AES-256-GCM(ciphertext + tag)``. The
key is derived from ``settings.PIN_SECRET_KEY`` so every process sharing that
setting can read every other's tokens.
"""
import base64
import binascii
import hashlib
import os
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from app.core.config import settings

NONCE_SIZE = 12


class PinDecryptError(ValueError):
    """Raised when a stored PIN token cannot be decrypted with the current key."""


def _derive_key(secret: str) -> bytes:
    return hashlib.sha256(secret.encode("utf-8")).digest()


def encrypt(plaintext, secret: Optional[str] = None) -> str:
    key = _derive_key(secret or settings.PIN_SECRET_KEY)
    nonce = os.urandom(NONCE_SIZE)
    sealed = AESGCM(key).encrypt(nonce, str(plaintext).encode("utf-8"), None)
    return base64.urlsafe_b64encode(nonce + sealed).decode("ascii")


def decrypt(token: str, secret: Optional[str] = None) -> str:
    key = _derive_key(secret or settings.PIN_SECRET_KEY)
    try:
        raw = base64.urlsafe_b64decode(token.encode("ascii"))
    except (binascii.Error, ValueError, AttributeError) as e:
        raise PinDecryptError("PIN token is not valid base64") from e

    if len(raw) <= NONCE_SIZE:
        raise PinDecryptError("PIN token is too short")

    try:
        plain = AESGCM(key).decrypt(raw[:NONCE_SIZE], raw[NONCE_SIZE:], None)
    except InvalidTag as e:
        raise PinDecryptError("PIN token failed authentication") from e
    return plain.decode("utf-8")
