"""Shared schema plumbing: camelCase base model and strict base64 codec."""

import base64
import binascii

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for every wire schema: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def decode_base64(value: object, *, min_bytes: int = 1, exact_bytes: int | None = None,
                  max_bytes: int | None = None) -> bytes:
    """Strictly decode a base64 string; raises ValueError with a client-safe message."""
    if isinstance(value, bytes):
        decoded = value
    elif isinstance(value, str) and value:
        try:
            decoded = base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError):
            raise ValueError("must be valid base64")
    else:
        raise ValueError("must be a non-empty base64 string")
    if exact_bytes is not None and len(decoded) != exact_bytes:
        raise ValueError(f"must decode to exactly {exact_bytes} bytes")
    if len(decoded) < min_bytes:
        raise ValueError(f"must decode to at least {min_bytes} bytes")
    if max_bytes is not None and len(decoded) > max_bytes:
        raise ValueError(f"must decode to at most {max_bytes} bytes")
    return decoded


def encode_base64(value: bytes) -> str:
    return base64.b64encode(value).decode("ascii")
