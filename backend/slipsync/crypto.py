# Overview: At-rest encryption and lookup hashing for print device secrets.

"""
Device secret storage.

SECURITY: The pairing endpoint has to hand an already-paired agent its
existing secret, so the secret must be recoverable server-side. It is held
Fernet-encrypted; only the SHA-256 lookup hash is stored in the clear.

The key comes from DEVICE_SECRET_ENCRYPTION_KEY (a Fernet key). When unset,
one is derived from SECRET_KEY, so rotating SECRET_KEY makes stored device
secrets unreadable until the agents re-pair after a rotation.

Generate a key with:
  python -c "from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())"
"""

from __future__ import annotations

import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken
from flask import current_app


class SecretDecryptionError(RuntimeError):
    """Stored secret cannot be decrypted with the configured key."""


def hash_secret(secret: str) -> str:
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def _fernet() -> Fernet:
    key = (current_app.config.get("DEVICE_SECRET_ENCRYPTION_KEY") or "").strip()
    if key:
        return Fernet(key.encode("utf-8"))
    digest = hashlib.sha256(current_app.config["SECRET_KEY"].encode("utf-8")).digest()
    return Fernet(base64.urlsafe_b64encode(digest))


def encrypt_secret(secret: str) -> str:
    return _fernet().encrypt(secret.encode("utf-8")).decode("utf-8")


def decrypt_secret(token: str) -> str:
    try:
        return _fernet().decrypt(token.encode("utf-8")).decode("utf-8")
    except InvalidToken:
        raise SecretDecryptionError("Stored device secret cannot be decrypted with the configured key") from None
