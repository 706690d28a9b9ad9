"""Password Digest Utilities

Provides passlib-based password hashing and verification.

Security Notes:
- SHA-256 digest rendered as 64 lowercase hex characters
- Deterministic: the same plaintext always yields the same digest
- Plain passwords are never stored
- Verification uses passlib's constant-time comparison
"""

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["hex_sha256"])


def hash_password(password: str) -> str:
    """Digest a plain password.

    Args:
        password: Plain text password

    Returns:
        Lowercase hex digest (safe to store in the credential store)

    Example:
        >>> digest = hash_password("secret1")
        >>> len(digest)
        64
        >>> digest == hash_password("secret1")
        True
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against its stored digest.

    Returns:
        True if password matches, False otherwise (including blank input)
    """
    if not plain_password or not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)
