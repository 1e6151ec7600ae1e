"""Device-key signatures over server-issued challenges.

The device's key pair lives with a collaborator (secure enclave, smartcard,
key file); this module only asks a KeyStore for it and produces a compact
ES256 JWS over the challenge nonce.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from acmeauth.models.errors import SignatureError

logger = logging.getLogger(__name__)

SIGNING_ALGORITHM = "ES256"


@dataclass(frozen=True)
class KeyPair:
    """Device signing key with an optional key identifier."""

    signing_key: ec.EllipticCurvePrivateKey
    key_id: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.signing_key.curve, ec.SECP256R1):
            raise ValueError(
                f"ES256 requires a P-256 key, got {self.signing_key.curve.name}"
            )

    @property
    def public_key(self) -> ec.EllipticCurvePublicKey:
        return self.signing_key.public_key()


class KeyStore(Protocol):
    """Accessor for the device key pair.

    Loading may block on hardware or a biometric prompt.
    """

    def load_key_pair(self) -> KeyPair: ...


class StaticKeyStore:
    """Key store holding an already loaded key pair."""

    def __init__(self, key_pair: KeyPair):
        self._key_pair = key_pair

    def load_key_pair(self) -> KeyPair:
        return self._key_pair


class PemFileKeyStore:
    """Key store reading a PKCS#8 PEM private key from disk on every load."""

    def __init__(
        self, path: str | Path, password: bytes | None = None, key_id: str | None = None
    ):
        self.path = Path(path)
        self._password = password
        self.key_id = key_id

    def load_key_pair(self) -> KeyPair:
        private_key = serialization.load_pem_private_key(
            self.path.read_bytes(), password=self._password
        )
        if not isinstance(private_key, ec.EllipticCurvePrivateKey):
            raise ValueError(f"{self.path} does not hold an elliptic curve key")
        return KeyPair(signing_key=private_key, key_id=self.key_id)


class ChallengeSigner:
    """Signs challenge nonces with the device key.

    Failures are reported as SignatureError and never retried here; key
    availability is the key store's concern.
    """

    def __init__(self, key_store: KeyStore):
        self.key_store = key_store

    def sign(self, nonce: str, key_pair: KeyPair | None = None) -> str:
        """Produce a compact JWS over ``{"nonce": nonce}``.

        Args:
            nonce: Server-issued challenge value
            key_pair: Key to sign with; loaded from the key store when omitted

        Returns:
            Compact serialized ES256 JWS

        Raises:
            SignatureError: If the key cannot be loaded or signing fails
        """
        if key_pair is None:
            try:
                key_pair = self.key_store.load_key_pair()
            except Exception as e:
                raise SignatureError(f"Failed to load device key pair: {e}") from e

        headers = {"kid": key_pair.key_id} if key_pair.key_id else None
        try:
            token = jwt.encode(
                {"nonce": nonce},
                key_pair.signing_key,
                algorithm=SIGNING_ALGORITHM,
                headers=headers,
            )
        except Exception as e:
            raise SignatureError(f"Failed to sign challenge: {e}") from e

        logger.debug("Signed challenge nonce with device key")
        return token

    async def sign_async(self, nonce: str) -> str:
        """Sign off the event loop, as key access may block."""
        return await asyncio.to_thread(self.sign, nonce)
