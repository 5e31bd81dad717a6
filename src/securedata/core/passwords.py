"""Strong password generation."""

import secrets
import string

SYMBOLS = "!@#$%^&*()-_=+[]{};:,.?"
MIN_LENGTH = 8
DEFAULT_LENGTH = 16

_CLASSES = (string.ascii_lowercase, string.ascii_uppercase, string.digits, SYMBOLS)
_ALPHABET = "".join(_CLASSES)


def generate_strong_password(length: int = DEFAULT_LENGTH) -> str:
    """
    Generate a random password containing every character class.

    Args:
        length: Password length, at least MIN_LENGTH

    Returns:
        Password with at least one lowercase, uppercase, digit and symbol
    """
    if length < MIN_LENGTH:
        raise ValueError(f"Password length must be at least {MIN_LENGTH}")

    chars = [secrets.choice(group) for group in _CLASSES]
    chars += [secrets.choice(_ALPHABET) for _ in range(length - len(chars))]
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)
