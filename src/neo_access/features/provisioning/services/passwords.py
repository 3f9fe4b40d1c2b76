"""Password helpers."""

import secrets
import string

from ....config.constants import Limits

PASSWORD_ALPHABET = string.ascii_letters + string.digits


def generate_password(length: int = Limits.GENERATED_PASSWORD_LENGTH) -> str:
    """Random alphanumeric password for an owner to hand to a new sub-user."""
    if length < Limits.MIN_PASSWORD_LENGTH:
        raise ValueError(f"Generated passwords must be at least {Limits.MIN_PASSWORD_LENGTH} characters")
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))
