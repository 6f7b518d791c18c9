"""
data: URL helpers for moving video bytes through JSON APIs.
"""
import base64
import binascii
from typing import Tuple

from autoshorts.core.errors import InvalidInputError


def encode_data_url(payload: bytes, mime_type: str = "video/mp4") -> str:
    return f"data:{mime_type};base64,{base64.b64encode(payload).decode('ascii')}"


def decode_data_url(value: str) -> Tuple[bytes, str]:
    """
    Decode a data URL (or bare base64 string) into (bytes, mime_type).

    Raises InvalidInputError on malformed input.
    """
    mime_type = "video/mp4"
    data = value.strip()
    if data.startswith("data:"):
        header, sep, data = data.partition(",")
        if not sep:
            raise InvalidInputError("data URL has no payload separator")
        meta = header[len("data:"):]
        if ";base64" not in meta:
            raise InvalidInputError("only base64 data URLs are supported")
        mime_type = meta.split(";")[0] or mime_type
    try:
        payload = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidInputError(f"invalid base64 payload: {e}") from e
    if not payload:
        raise InvalidInputError("data URL payload is empty")
    return payload, mime_type
