"""
core/ids.py -- Random public identifiers.

new_id() draws from the 64-character URL-safe alphabet, so ids can go straight
into URL paths and object keys without escaping. The default size of 21 gives
about 126 bits of randomness.

Layer rule: core/ is the kernel -- no imports from api/, auth/, blog/, media/.
"""

import secrets

URL_SAFE_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ_-"
DEFAULT_ID_SIZE = 21


def new_id(size: int = DEFAULT_ID_SIZE) -> str:
    return "".join(secrets.choice(URL_SAFE_ALPHABET) for _ in range(size))
