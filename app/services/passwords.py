import random
import string

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

_CLASSES = (string.ascii_uppercase, string.ascii_lowercase, string.digits)
_ALPHABET = "".join(_CLASSES)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def generate_temporary_password(rng: random.Random, length: int = 12) -> str:
    """Random password with at least one upper, lower and digit character.

    ``rng`` is the randomness source; pass ``secrets.SystemRandom()`` for
    anything handed to a user.
    """
    if length < len(_CLASSES):
        raise ValueError(f"length must be at least {len(_CLASSES)}")

    chars = [rng.choice(group) for group in _CLASSES]
    chars.extend(rng.choice(_ALPHABET) for _ in range(length - len(chars)))
    rng.shuffle(chars)
    return "".join(chars)
