"""
Image I/O for the HTTP layer
Upload validation, URL fetching and PNG export of the generated texture
"""

import io
import os
from typing import Optional, Tuple

import requests
from PIL import Image

from painter.images import decode_data_uri, encode_data_uri

# Layout formats accepted on upload
ALLOWED_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif', 'bmp', 'tiff', 'webp'}

DEFAULT_MAX_UPLOAD_BYTES = 16 * 1024 * 1024

# Fixed name of the downloadable texture
RESULT_FILENAME = 'roblox_skin_ai.png'

DOWNLOAD_TIMEOUT = 30
DOWNLOAD_CHUNK_SIZE = 8192


def allowed_file(filename: str) -> bool:
    extension = os.path.splitext(filename)[1].lstrip('.').lower()
    return extension in ALLOWED_EXTENSIONS


def format_megabytes(size_bytes: int) -> str:
    return f"{size_bytes / (1024 * 1024):.0f} MB"


def format_processing_time(start_time: float, end_time: float) -> str:
    """Elapsed time as "850ms", "4.2s" or "1m 3.0s"."""
    elapsed = end_time - start_time
    if elapsed < 1:
        return f"{elapsed * 1000:.0f}ms"
    minutes, seconds = divmod(elapsed, 60)
    if not minutes:
        return f"{seconds:.1f}s"
    return f"{int(minutes)}m {seconds:.1f}s"


def validate_image_file(file, max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES) -> Tuple[bool, str]:
    """
    Check an uploaded layout before it is decoded

    Args:
        file: werkzeug FileStorage from request.files
        max_bytes: Largest accepted upload

    Returns:
        tuple: (is_valid, error_message)
    """
    if not file or not file.filename:
        return False, "No file provided"

    if not allowed_file(file.filename):
        return False, f"Invalid file type. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}"

    stream = file.stream
    stream.seek(0, io.SEEK_END)
    size = stream.tell()
    stream.seek(0)

    if size > max_bytes:
        return False, f"File too large. Maximum size: {format_megabytes(max_bytes)}"
    if size == 0:
        return False, "Empty file provided"
    return True, ""


def image_bytes_to_data_uri(data: bytes) -> Tuple[str, dict]:
    """
    Verify raw bytes are a readable image and encode them as a data URI

    Args:
        data: Raw image bytes in any format Pillow can read

    Returns:
        tuple: (data_uri, image_info)

    Raises:
        ValueError: If the bytes are not a readable image
    """
    try:
        with Image.open(io.BytesIO(data)) as probe:
            probe.verify()
        # verify() leaves the image unusable; reopen for metadata
        with Image.open(io.BytesIO(data)) as layout:
            image_format = layout.format
            image_info = {
                'width': layout.width,
                'height': layout.height,
                'mode': layout.mode,
                'format': image_format,
                'size_bytes': len(data)
            }
    except Exception as e:
        raise ValueError(f"Could not read image: {e}") from e

    mime_type = Image.MIME.get(image_format, 'image/png')
    return encode_data_uri(data, mime_type), image_info


def download_image_from_url(image_url: str, max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES) -> Optional[bytes]:
    """
    Fetch a layout image into memory

    Returns:
        bytes: Raw image bytes, or None if the URL is unusable, the request
            fails, or the body exceeds max_bytes
    """
    if not image_url.lower().startswith(('http://', 'https://')):
        return None

    try:
        with requests.get(image_url, timeout=DOWNLOAD_TIMEOUT, stream=True,
                          headers={'User-Agent': 'uv-texture-painter/0.1'}) as response:
            response.raise_for_status()
            body = bytearray()
            for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                body.extend(chunk)
                if len(body) > max_bytes:
                    print(f"⚠️ Download exceeded {format_megabytes(max_bytes)}: {image_url}")
                    return None
    except requests.exceptions.RequestException as e:
        print(f"❌ Failed to download image from {image_url}: {e}")
        return None

    return bytes(body)


def data_uri_to_png_bytes(data_uri: str) -> bytes:
    """PNG bytes of a result image; other formats are re-encoded with Pillow."""
    mime_type, data = decode_data_uri(data_uri)
    if mime_type == 'image/png':
        return data

    with Image.open(io.BytesIO(data)) as texture:
        if texture.mode not in ('RGB', 'RGBA'):
            texture = texture.convert('RGBA')
        output = io.BytesIO()
        texture.save(output, format='PNG')
    return output.getvalue()
