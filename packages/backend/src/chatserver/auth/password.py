"""Password hashing utilities.

Learn: Uses argon2id (memory-hard) via argon2-cffi. The hash string is in
PHC format, with algorithm, version, cost parameters, salt and digest
encoded together, so verification never needs out-of-band parameters:

    $argon2id$v=19$m=65536,t=3,p=4$<salt>$<digest>
"""

from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHashError, VerificationError

# argon2-cffi defaults (RFC 9106 low-memory profile) with an explicit type.
_hasher = PasswordHasher(type=Type.ID)


def hash_password(password: str) -> str:
    """Hash a password with argon2id and a fresh random salt.

    argon2.exceptions.HashingError propagates: a hashing
    failure is a broken deployment, not a user error.
    """
    return _hasher.hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    """Verify a password against its stored hash.

    Returns False for a mismatch and for an empty or malformed hash alike.
    Callers must not distinguish the two.
    """
    if not password_hash:
        return False
    try:
        return _hasher.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False
