"""Tests for ES256 challenge signing with the device key."""

from unittest.mock import Mock

import jwt
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from acmeauth.models.errors import ErrorKind, SignatureError
from acmeauth.primitives.signing import (
    ChallengeSigner,
    KeyPair,
    PemFileKeyStore,
    StaticKeyStore,
)


def new_key_pair(key_id: str | None = "device-1") -> KeyPair:
    return KeyPair(signing_key=ec.generate_private_key(ec.SECP256R1()), key_id=key_id)


class TestChallengeSigner:
    def setup_method(self):
        self.key_pair = new_key_pair()
        self.signer = ChallengeSigner(StaticKeyStore(self.key_pair))

    def test_signature_is_verifiable_es256_jws_over_nonce(self):
        """Test signature is verifiable es256 jws over nonce."""
        # Act
        token = self.signer.sign("nonce-123")

        # Assert
        claims = jwt.decode(token, self.key_pair.public_key, algorithms=["ES256"])
        assert claims == {"nonce": "nonce-123"}
        header = jwt.get_unverified_header(token)
        assert header["alg"] == "ES256"
        assert header["kid"] == "device-1"

    def test_explicit_key_pair_bypasses_key_store(self):
        """Test explicit key pair bypasses key store."""
        # Arrange
        key_store = Mock()
        signer = ChallengeSigner(key_store)
        key_pair = new_key_pair(key_id=None)

        # Act
        token = signer.sign("nonce", key_pair)

        # Assert
        key_store.load_key_pair.assert_not_called()
        assert jwt.decode(token, key_pair.public_key, algorithms=["ES256"]) == {
            "nonce": "nonce"
        }
        assert "kid" not in jwt.get_unverified_header(token)

    def test_key_store_failure_raises_signature_error(self):
        """Test key store failure raises signature error."""
        # Arrange
        key_store = Mock()
        key_store.load_key_pair.side_effect = RuntimeError("biometric prompt cancelled")
        signer = ChallengeSigner(key_store)

        # Act & Assert
        with pytest.raises(SignatureError) as exc_info:
            signer.sign("nonce")

        assert exc_info.value.kind is ErrorKind.SIGNATURE
        assert "biometric prompt cancelled" in str(exc_info.value)
        key_store.load_key_pair.assert_called_once()

    def test_signing_failure_raises_signature_error(self):
        """Test signing failure raises signature error."""
        # Arrange
        broken_key = Mock(spec=ec.EllipticCurvePrivateKey)
        broken_key.curve = ec.SECP256R1()
        broken_key.sign.side_effect = ValueError("key handle invalidated")
        signer = ChallengeSigner(StaticKeyStore(KeyPair(signing_key=broken_key)))

        # Act & Assert
        with pytest.raises(SignatureError):
            signer.sign("nonce")

    async def test_sign_async_produces_same_kind_of_token(self):
        """Test sign async produces same kind of token."""
        token = await self.signer.sign_async("nonce-async")

        claims = jwt.decode(token, self.key_pair.public_key, algorithms=["ES256"])
        assert claims["nonce"] == "nonce-async"


class TestKeyPair:
    def test_rejects_non_p256_curve(self):
        """Test rejects non p256 curve."""
        with pytest.raises(ValueError):
            KeyPair(signing_key=ec.generate_private_key(ec.SECP384R1()))


class TestPemFileKeyStore:
    def test_loads_pkcs8_pem_key(self, tmp_path):
        """Test loads pkcs8 pem key."""
        # Arrange
        private_key = ec.generate_private_key(ec.SECP256R1())
        path = tmp_path / "device.pem"
        path.write_bytes(
            private_key.private_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PrivateFormat.PKCS8,
                encryption_algorithm=serialization.NoEncryption(),
            )
        )
        signer = ChallengeSigner(PemFileKeyStore(path, key_id="pem-key"))

        # Act
        token = signer.sign("nonce")

        # Assert
        assert jwt.decode(token, private_key.public_key(), algorithms=["ES256"]) == {
            "nonce": "nonce"
        }

    def test_missing_key_file_surfaces_as_signature_error(self, tmp_path):
        """Test missing key file surfaces as signature error."""
        signer = ChallengeSigner(PemFileKeyStore(tmp_path / "absent.pem"))

        with pytest.raises(SignatureError):
            signer.sign("nonce")
