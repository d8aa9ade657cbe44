"""Password hashing.

bcrypt salts every digest, so hashing the same password twice gives different
strings. Login therefore verifies the plaintext against the stored digest
with ``verify_password`` rather than hashing and comparing.
"""

import bcrypt


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode(), hashed.encode())
