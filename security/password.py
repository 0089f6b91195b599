import bcrypt
from flask import current_app


def _rounds() -> int:
    return current_app.config.get("BCRYPT_ROUNDS", 12)


def hash_password(plain_password: str) -> str:
    if not isinstance(plain_password, str) or not plain_password:
        raise ValueError("Password must be a non-empty string")
    hashed = bcrypt.hashpw(plain_password.encode("utf-8"), bcrypt.gensalt(rounds=_rounds()))
    return hashed.decode("utf-8")


def verify_password(plain_password, password_hash: str) -> bool:
    if not isinstance(plain_password, str) or not plain_password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


def needs_rehash(password_hash: str) -> bool:
    """True when the stored hash was made with a different cost than configured."""
    try:
        cost = int(password_hash.split("$")[2])
    except (AttributeError, IndexError, ValueError):
        return True
    return cost != _rounds()
