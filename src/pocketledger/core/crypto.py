"""Encryption of provider access credentials at rest.

Uses Fernet (AES-128-CBC + HMAC) so a stored credential is both
confidential and tamper-evident.
"""

from cryptography.fernet import Fernet, InvalidToken


class CredentialCipher:
    """Encrypts and decrypts provider access credentials."""

    def __init__(self, key: str | bytes):
        if isinstance(key, str):
            key = key.encode()
        self._fernet = Fernet(key)

    @classmethod
    def generate_key(cls) -> str:
        return Fernet.generate_key().decode()

    def encrypt(self, plain_text: str) -> str:
        return self._fernet.encrypt(plain_text.encode()).decode()

    def decrypt(self, cipher_text: str) -> str:
        """Decrypt a stored credential.

        Raises:
            ValueError: If the ciphertext was tampered with or produced
                under a different key.
        """
        try:
            return self._fernet.decrypt(cipher_text.encode()).decode()
        except InvalidToken as e:
            raise ValueError("Stored credential cannot be decrypted with the configured key") from e
