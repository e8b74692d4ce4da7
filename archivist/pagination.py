"""
Opaque page token encoding.

A token is a pydantic model serialized to JSON, deflate-compressed into a
short binary payload and base64url encoded without padding. Tokens are
validated against their model on both encode and decode.
"""

import base64
import binascii
import re
import zlib
from typing import TypeVar

from pydantic import BaseModel, ValidationError

T = TypeVar("T", bound=BaseModel)

_TOKEN_ALPHABET = re.compile(r"^[A-Za-z0-9_-]*$")


class TokenError(ValueError):
    """
    An invalid page token.

    The message never reveals why; the underlying error is chained as
    ``__cause__``.
    """

    def __init__(self):
        super().__init__("invalid pagination token")


def from_token(token: str, model: type[T]) -> T:
    """Decode an opaque token into an instance of ``model``."""
    try:
        if not _TOKEN_ALPHABET.match(token):
            raise ValueError("token contains characters outside the base64url alphabet")
        padded = token + "=" * (-len(token) % 4)
        data = zlib.decompress(base64.urlsafe_b64decode(padded))
        return model.model_validate_json(data)
    except (binascii.Error, zlib.error, ValidationError, ValueError) as e:
        raise TokenError() from e


def to_token(msg: BaseModel) -> str:
    """Encode ``msg`` into an opaque token."""
    try:
        type(msg).model_validate(msg.model_dump())
    except ValidationError as e:
        raise TokenError() from e
    data = zlib.compress(msg.model_dump_json().encode("utf-8"), level=9)
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")
