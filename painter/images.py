"""
Data URI helpers shared by the pipeline and the HTTP layer
"""

import base64
import binascii
import re
from typing import Tuple

DEFAULT_MIME_TYPE = 'image/png'

_DATA_URI_RE = re.compile(r'^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?:;[^,]*)?,(?P<data>.*)$', re.DOTALL)


def encode_data_uri(data: bytes, mime_type: str = DEFAULT_MIME_TYPE) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def decode_data_uri(data_uri: str) -> Tuple[str, bytes]:
    """
    Split a base64 data URI into its mime type and raw bytes

    Args:
        data_uri: String like "data:image/png;base64,iVBOR..."

    Returns:
        tuple: (mime_type, raw bytes)
    """
    match = _DATA_URI_RE.match(data_uri)
    if not match:
        raise ValueError("Not a data URI")
    mime_type = match.group('mime') or DEFAULT_MIME_TYPE
    try:
        data = base64.b64decode(match.group('data'), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Invalid base64 payload: {e}") from e
    return mime_type, data
