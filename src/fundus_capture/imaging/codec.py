"""
Image Codec
===========

Pixel buffer access layer: decoding captures into Frames and encoding
Frames back into JPEG/PNG bytes.

Design Rules:
    - This is the ONLY place in the codebase that decodes or encodes images
    - OpenCV works in BGR(A); Frames are RGBA. Conversion happens here only
    - Fails fast on corrupt input, never retries
    - JPEG for photographic output, PNG when transparency must survive
"""

import base64
import binascii
import logging
from pathlib import Path
from typing import Tuple, Union

import cv2
import numpy as np

from fundus_capture.errors import ImageDecodeError, ImageEncodeError
from fundus_capture.models.frame import Frame


logger = logging.getLogger(__name__)


DEFAULT_JPEG_QUALITY = 92

_JPEG_SUFFIXES = {".jpg", ".jpeg"}
_JPEG_MAGIC = b"\xff\xd8"
_PNG_SUFFIXES = {".png"}


def frame_from_bgr(image: np.ndarray) -> Frame:
    """
    Build a Frame from an OpenCV-ordered array.

    Args:
        image: Gray (H, W), BGR (H, W, 3) or BGRA (H, W, 4) array.
            16-bit input is reduced to 8 bits.

    Returns:
        RGBA Frame

    Raises:
        ImageDecodeError: If the array shape or dtype is unsupported
    """
    if image.dtype == np.uint16:
        image = (image >> 8).astype(np.uint8)

    if image.dtype != np.uint8:
        raise ImageDecodeError(f"Unsupported image dtype: {image.dtype}")

    if image.ndim == 2:
        rgba = cv2.cvtColor(image, cv2.COLOR_GRAY2RGBA)
    elif image.ndim == 3 and image.shape[2] == 3:
        rgba = cv2.cvtColor(image, cv2.COLOR_BGR2RGBA)
    elif image.ndim == 3 and image.shape[2] == 4:
        rgba = cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)
    else:
        raise ImageDecodeError(f"Unsupported image shape: {image.shape}")

    return Frame(rgba)


def decode_image(data: bytes) -> Frame:
    """
    Decode encoded image bytes (JPEG, PNG, ...) into a Frame.

    JPEGs are returned upright: their EXIF orientation tag is applied,
    as a browser does. Other formats keep their alpha channel.

    Args:
        data: Encoded image bytes

    Returns:
        RGBA Frame

    Raises:
        ImageDecodeError: If decoding fails or image is invalid
    """
    if not data:
        raise ImageDecodeError("Cannot decode empty image data")

    nparr = np.frombuffer(data, np.uint8)

    # IMREAD_UNCHANGED skips EXIF orientation; JPEG has no alpha to keep
    flags = cv2.IMREAD_COLOR if data[:2] == _JPEG_MAGIC else cv2.IMREAD_UNCHANGED

    try:
        image = cv2.imdecode(nparr, flags)
    except cv2.error as e:
        raise ImageDecodeError(f"cv2.imdecode failed: {e}") from e

    if image is None:
        raise ImageDecodeError(
            f"Failed to decode {len(data)} bytes: cv2.imdecode returned None"
        )

    frame = frame_from_bgr(image)
    logger.debug(f"Decoded image {frame.width}x{frame.height}")
    return frame


def encode_jpeg(frame: Frame, quality: int = DEFAULT_JPEG_QUALITY) -> bytes:
    """
    Encode a Frame as JPEG. Alpha is discarded.

    Args:
        frame: Frame to encode
        quality: JPEG quality 1-100

    Returns:
        JPEG bytes

    Raises:
        ImageEncodeError: If quality is out of range or encoding fails
    """
    if not 1 <= quality <= 100:
        raise ImageEncodeError(f"JPEG quality must be in [1, 100], got {quality}")

    bgr = cv2.cvtColor(frame.pixels, cv2.COLOR_RGBA2BGR)
    ok, buf = cv2.imencode(".jpg", bgr, [cv2.IMWRITE_JPEG_QUALITY, int(quality)])
    if not ok:
        raise ImageEncodeError("cv2.imencode failed for JPEG output")
    return buf.tobytes()


def encode_png(frame: Frame) -> bytes:
    """
    Encode a Frame as PNG, keeping the alpha channel.

    Raises:
        ImageEncodeError: If encoding fails
    """
    bgra = cv2.cvtColor(frame.pixels, cv2.COLOR_RGBA2BGRA)
    ok, buf = cv2.imencode(".png", bgra)
    if not ok:
        raise ImageEncodeError("cv2.imencode failed for PNG output")
    return buf.tobytes()


def to_data_url(data: bytes, mime: str = "image/jpeg") -> str:
    """Wrap encoded image bytes in a base64 data URL."""
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def parse_data_url(url: str) -> Tuple[str, bytes]:
    """
    Split a base64 data URL into (mime, bytes).

    Raises:
        ImageDecodeError: If the URL is not a base64 data URL
    """
    if not url.startswith("data:") or "," not in url:
        raise ImageDecodeError("Not a data URL")

    header, payload = url[5:].split(",", 1)
    parts = header.split(";")
    if "base64" not in parts[1:]:
        raise ImageDecodeError("Only base64 data URLs are supported")

    try:
        data = base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise ImageDecodeError(f"Base64 decode failed: {e}") from e

    return parts[0] or "application/octet-stream", data


def decode_data_url(url: str) -> Frame:
    """
    Decode a base64 image data URL (as produced by a browser canvas).

    Raises:
        ImageDecodeError: If the URL or its image payload is invalid
    """
    _, data = parse_data_url(url)
    return decode_image(data)


def load_image(path: Union[str, Path]) -> Frame:
    """
    Read and decode an image file.

    Raises:
        FileNotFoundError: If the file does not exist
        ImageDecodeError: If the file is not a decodable image
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Image file not found: {path}")

    logger.info(f"Loading image from: {path}")
    return decode_image(file_path.read_bytes())


def save_image(
    frame: Frame,
    path: Union[str, Path],
    jpeg_quality: int = DEFAULT_JPEG_QUALITY,
) -> Path:
    """
    Encode and write a Frame. The file suffix selects JPEG or PNG.

    Raises:
        ImageEncodeError: If the suffix is unsupported or encoding fails
    """
    file_path = Path(path)
    suffix = file_path.suffix.lower()

    if suffix in _JPEG_SUFFIXES:
        if not frame.is_opaque:
            logger.warning(f"Writing transparent image as JPEG drops alpha: {path}")
        data = encode_jpeg(frame, quality=jpeg_quality)
    elif suffix in _PNG_SUFFIXES:
        data = encode_png(frame)
    else:
        raise ImageEncodeError(f"Unsupported output format: {suffix or '(none)'}")

    file_path.write_bytes(data)
    logger.info(f"Wrote {frame.width}x{frame.height} image to: {path}")
    return file_path
