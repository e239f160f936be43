"""Fernet encryption for database host passwords.

Ciphertext is a URL-safe base64 token string keyed by the panel's APP_KEY.
"""

import logging
from functools import lru_cache

from cryptography.fernet import Fernet, InvalidToken

from app.config import get_settings

logger = logging.getLogger(__name__)


class DecryptionError(Exception):
    """Raised when a stored ciphertext cannot be decrypted with the current key."""
    def __init__(self, message: str = "Stored credentials could not be decrypted with the configured APP_KEY."):
        super().__init__(message)


class Encrypter:
    """Encrypt and decrypt short secrets with a single Fernet key."""

    def __init__(self, key: str):
        self._fernet = Fernet(key.encode())

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a secret. Returns a URL-safe base64 token string."""
        return self._fernet.encrypt(plaintext.encode()).decode()

    def decrypt(self, ciphertext: str) -> str:
        """Decrypt a secret from its Fernet token.

        Raises:
            DecryptionError: If the token is malformed or was produced with another key.
        """
        try:
            return self._fernet.decrypt(ciphertext.encode()).decode()
        except InvalidToken:
            logger.error("Failed to decrypt stored credential: invalid token or key mismatch")
            raise DecryptionError()


@lru_cache
def get_encrypter() -> Encrypter:
    """Get the Encrypter built from the configured APP_KEY."""
    return Encrypter(get_settings().get_app_key())
