import secrets


def generate_random_token(nbytes: int = 16) -> str:
    """Generate an opaque hex token (16 bytes = 128 bits)"""
    return secrets.token_hex(nbytes)


def generate_numeric_code(low: int, high: int) -> str:
    """Uniform random integer in [low, high], as a string"""
    return str(low + secrets.randbelow(high - low + 1))
