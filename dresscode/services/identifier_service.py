# Overview: Generates the short public codes used as document identifiers.

"""
Order, bill, assignment, raise and variant ids are 6 upper-case hex
characters (3 random bytes). Coupon codes are 8 characters from [A-Z0-9].

Codes are random, so uniqueness is checked against the owning column and
generation is retried on collision.
"""

import secrets
import string

from ..errors import InternalError
from ..extensions import db


COUPON_ALPHABET = string.ascii_uppercase + string.digits
MAX_ATTEMPTS = 10


def random_hex_code(nbytes: int = 3) -> str:
    return secrets.token_hex(nbytes).upper()


def random_coupon_code(length: int = 8) -> str:
    return "".join(secrets.choice(COUPON_ALPHABET) for _ in range(length))


def unique_code(column, generator=random_hex_code) -> str:
    """
    Return a code not yet present in the given model column.

    Raises InternalError if no free code is found after MAX_ATTEMPTS tries.
    """
    for _ in range(MAX_ATTEMPTS):
        code = generator()
        exists = db.session.query(column).filter(column == code).first()
        if exists is None:
            return code
    raise InternalError("Could not allocate a unique identifier")
