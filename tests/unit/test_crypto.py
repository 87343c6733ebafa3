"""Unit tests for credential encryption."""

import pytest

from pocketledger.core.crypto import CredentialCipher


class TestCredentialCipher:
    """Test encryption of provider access credentials."""

    def test_encrypt_hides_plain_text(self):
        cipher = CredentialCipher(CredentialCipher.generate_key())
        token = cipher.encrypt("access-sandbox-1234")

        assert "access-sandbox-1234" not in token
        assert cipher.decrypt(token) == "access-sandbox-1234"

    def test_encrypt_is_randomized(self):
        cipher = CredentialCipher(CredentialCipher.generate_key())

        assert cipher.encrypt("same") != cipher.encrypt("same")

    def test_decrypt_with_other_key_fails(self):
        token = CredentialCipher(CredentialCipher.generate_key()).encrypt("secret")
        other = CredentialCipher(CredentialCipher.generate_key())

        with pytest.raises(ValueError):
            other.decrypt(token)

    def test_decrypt_tampered_fails(self):
        cipher = CredentialCipher(CredentialCipher.generate_key())
        token = cipher.encrypt("secret")
        tampered = token[:-4] + ("AAAA" if not token.endswith("AAAA") else "BBBB")

        with pytest.raises(ValueError):
            cipher.decrypt(tampered)

    def test_accepts_bytes_key(self):
        key = CredentialCipher.generate_key().encode()
        cipher = CredentialCipher(key)

        assert cipher.decrypt(cipher.encrypt("x")) == "x"
