"""
Share-password encryption using Fernet symmetric encryption.
"""

import base64
import hmac

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from config import settings


def _get_fernet() -> Fernet:
    """Get Fernet instance from encryption key."""
    key = settings.ENCRYPTION_KEY

    # If key is not 32 bytes, derive a key using PBKDF2
    if len(key) != 32:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=b"buildmyhomes_share_salt",
            iterations=100000,
        )
        key = base64.urlsafe_b64encode(kdf.derive(key.encode()))
    else:
        key = base64.urlsafe_b64encode(key.encode())

    return Fernet(key)


def encrypt_secret(secret: str) -> str:
    """
    Encrypt a share password for storage.

    Args:
        secret: Plain text password

    Returns:
        Base64-encoded ciphertext
    """
    fernet = _get_fernet()
    return fernet.encrypt(secret.encode()).decode()


def decrypt_secret(encrypted_secret: str) -> str:
    """
    Decrypt a stored share password.

    Raises:
        ValueError: ciphertext was produced with a different key or is corrupt.
    """
    fernet = _get_fernet()
    try:
        return fernet.decrypt(encrypted_secret.encode()).decode()
    except InvalidToken as exc:
        raise ValueError("Stored secret could not be decrypted.") from exc


def secrets_match(supplied: str, expected: str) -> bool:
    """Exact, constant-time string comparison."""
    return hmac.compare_digest(supplied.encode(), expected.encode())
