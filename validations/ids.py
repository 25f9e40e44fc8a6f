import secrets

ID_BYTES = 12


def generate_id() -> str:
    """
    Random URL-safe identifier.
    12 bytes -> 16 base64url characters (96 bits).
    """
    return secrets.token_urlsafe(ID_BYTES)
