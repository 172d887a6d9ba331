"""Credential hashing.

Secrets are stored as werkzeug salted PBKDF2-SHA256 hashes:

    pbkdf2:sha256:{iterations}${salt}${digest}
"""

from __future__ import annotations

from werkzeug.security import check_password_hash, generate_password_hash

ALGORITHM = "pbkdf2:sha256"
ITERATIONS = 120_000


def hash_secret(secret: str, iterations: int = ITERATIONS) -> str:
    """Derive the stored credential for a secret."""
    return generate_password_hash(secret, method=f"{ALGORITHM}:{iterations}")


def verify_secret(secret: str, credential: str) -> bool:
    """Check a secret against a stored credential in constant time."""
    try:
        return check_password_hash(credential, secret)
    except ValueError:
        # Unknown hash method or malformed iteration count
        return False
