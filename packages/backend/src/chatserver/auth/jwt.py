"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication. Tokens are
signed with an Ed25519 private key (EdDSA) and verified with the matching
public key, so a service that only verifies never needs the private half.

The token carries the user id (sub) and workspace id (ws_id). There is no
server-side session table: expiry is the only bound on a token's life.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import jwt
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import (
    load_pem_private_key,
    load_pem_public_key,
)

ALGORITHM = "EdDSA"


class KeyLoadError(Exception):
    """Raised at startup when a key file is missing or malformed."""


class TokenError(Exception):
    """Raised when token verification fails."""


class MalformedToken(TokenError):
    """Not a JWT, or missing/invalid claims."""


class SignatureInvalid(TokenError):
    """Signature does not match the verification key."""


class TokenExpired(TokenError):
    """exp is in the past."""


@dataclass(frozen=True)
class Claims:
    user_id: int
    ws_id: int


class TokenCodec:
    """Signs and verifies bearer tokens with a process-wide key pair.

    Build one at startup with TokenCodec.load() and share it read-only;
    it holds no mutable state.
    """

    def __init__(
        self,
        signing_key: Ed25519PrivateKey,
        verifying_key: Ed25519PublicKey,
        *,
        issuer: str = "chat_server",
        audience: str = "chat_web",
        expire_minutes: int = 60 * 24 * 7,
    ):
        self._signing_key = signing_key
        self._verifying_key = verifying_key
        self.issuer = issuer
        self.audience = audience
        self.expire_minutes = expire_minutes

    @classmethod
    def load(
        cls,
        sk_path: str | Path,
        pk_path: str | Path,
        **kwargs,
    ) -> "TokenCodec":
        """Load the signing and verification keys from two PEM files."""
        signing_key = _load_key(sk_path, load_pem_private_key, Ed25519PrivateKey, password=None)
        verifying_key = _load_key(pk_path, load_pem_public_key, Ed25519PublicKey)
        return cls(signing_key, verifying_key, **kwargs)

    def issue(
        self,
        user_id: int,
        ws_id: int,
        expires_minutes: Optional[int] = None,
    ) -> str:
        """Create a signed access token. Expiry is always set."""
        now = datetime.now(timezone.utc)
        if expires_minutes is None:
            expires_minutes = self.expire_minutes
        payload = {
            "sub": str(user_id),
            "ws_id": ws_id,
            "iss": self.issuer,
            "aud": self.audience,
            "iat": now,
            "exp": now + timedelta(minutes=expires_minutes),
        }
        return jwt.encode(payload, self._signing_key, algorithm=ALGORITHM)

    def verify(self, token: str) -> Claims:
        """Verify signature, expiry, issuer and audience.

        Returns the claims on success.
        Raises a TokenError subclass on failure.
        """
        try:
            payload = jwt.decode(
                token,
                self._verifying_key,
                algorithms=[ALGORITHM],
                issuer=self.issuer,
                audience=self.audience,
                options={"require": ["exp", "iat", "sub", "iss", "aud"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpired("Token has expired")
        except jwt.InvalidSignatureError:
            raise SignatureInvalid("Token signature is invalid")
        except jwt.InvalidTokenError as e:
            raise MalformedToken(f"Invalid token: {e}")

        try:
            return Claims(user_id=int(payload["sub"]), ws_id=int(payload["ws_id"]))
        except (KeyError, TypeError, ValueError):
            raise MalformedToken("Invalid token: missing sub or ws_id")


def _load_key(path, loader, expected_type, **loader_kwargs):
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise KeyLoadError(f"Cannot read key file {path}: {e}") from e
    try:
        key = loader(data, **loader_kwargs)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise KeyLoadError(f"Malformed key file {path}: {e}") from e
    if not isinstance(key, expected_type):
        raise KeyLoadError(f"Key file {path} is not an Ed25519 key")
    return key
