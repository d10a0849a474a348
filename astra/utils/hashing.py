"""
Public user handle derivation
"""

import hashlib


def create_user_hash(user_id: str) -> str:
    """
    Derive the public user hash from the internal user id

    SHA-256 hex digest: deterministic, one-way, safe for URLs and logs.
    Not a credential.
    """
    return hashlib.sha256(str(user_id).encode("utf-8")).hexdigest()
