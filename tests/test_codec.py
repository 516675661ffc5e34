"""
Codec Tests
===========

Decoding captures into RGBA Frames and encoding Frames for hand-off.
"""

import struct

import cv2
import numpy as np
import pytest

from fundus_capture.errors import ImageDecodeError, ImageEncodeError
from fundus_capture.imaging.codec import (
    decode_data_url,
    decode_image,
    encode_jpeg,
    encode_png,
    frame_from_bgr,
    load_image,
    parse_data_url,
    save_image,
    to_data_url,
)
from fundus_capture.models.frame import Frame


def with_exif_orientation(jpeg: bytes, orientation: int) -> bytes:
    """Insert a big-endian EXIF APP1 segment carrying only an orientation tag."""
    tiff = (
        b"MM\x00*" + struct.pack(">I", 8)
        + struct.pack(">H", 1)
        + struct.pack(">HHIHH", 0x0112, 3, 1, orientation, 0)
        + struct.pack(">I", 0)
    )
    payload = b"Exif\x00\x00" + tiff
    app1 = b"\xff\xe1" + struct.pack(">H", len(payload) + 2) + payload
    return jpeg[:2] + app1 + jpeg[2:]


class TestChannelOrder:
    """OpenCV BGR(A) arrays become RGBA Frames."""

    def test_bgr_blue_becomes_rgba_blue(self):
        bgr = np.zeros((4, 4, 3), dtype=np.uint8)
        bgr[..., 0] = 255

        frame = frame_from_bgr(bgr)

        np.testing.assert_array_equal(frame.pixels[0, 0], [0, 0, 255, 255])

    def test_grayscale_expanded(self):
        frame = frame_from_bgr(np.full((3, 5), 77, dtype=np.uint8))

        assert (frame.width, frame.height) == (5, 3)
        np.testing.assert_array_equal(frame.pixels[1, 1], [77, 77, 77, 255])

    def test_sixteen_bit_reduced(self):
        frame = frame_from_bgr(np.full((2, 2), 0xFF00, dtype=np.uint16))
        assert frame.pixels[0, 0, 0] == 0xFF

    def test_unsupported_dtype_rejected(self):
        with pytest.raises(ImageDecodeError):
            frame_from_bgr(np.zeros((2, 2, 3), dtype=np.float32))


class TestDecode:
    """decode_image failure modes."""

    def test_png_keeps_alpha(self):
        rgba = np.zeros((8, 8, 4), dtype=np.uint8)
        rgba[..., 1] = 200
        rgba[:4, :, 3] = 0
        rgba[4:, :, 3] = 255
        frame = Frame(rgba)

        decoded = decode_image(encode_png(frame))

        np.testing.assert_array_equal(decoded.pixels, frame.pixels)

    def test_jpeg_is_opaque(self):
        rgba = np.full((16, 16, 4), 100, dtype=np.uint8)
        data = encode_jpeg(Frame(rgba), quality=90)

        assert data[:2] == b"\xff\xd8"
        decoded = decode_image(data)
        assert decoded.is_opaque
        assert (decoded.width, decoded.height) == (16, 16)

    def test_jpeg_orientation_applied(self):
        # stored 32 wide, 16 tall, left half white
        bgr = np.zeros((16, 32, 3), dtype=np.uint8)
        bgr[:, :16] = 255
        ok, buf = cv2.imencode(".jpg", bgr, [cv2.IMWRITE_JPEG_QUALITY, 95])
        assert ok

        # orientation 6: rotate 90 degrees clockwise for display
        frame = decode_image(with_exif_orientation(buf.tobytes(), 6))

        assert (frame.width, frame.height) == (16, 32)
        assert frame.pixels[4, 8, 0] > 200
        assert frame.pixels[27, 8, 0] < 50

    def test_jpeg_without_orientation_unchanged(self):
        bgr = np.zeros((16, 32, 3), dtype=np.uint8)
        ok, buf = cv2.imencode(".jpg", bgr)
        assert ok

        frame = decode_image(with_exif_orientation(buf.tobytes(), 1))

        assert (frame.width, frame.height) == (32, 16)

    def test_empty_data(self):
        with pytest.raises(ImageDecodeError):
            decode_image(b"")

    def test_garbage_data(self):
        with pytest.raises(ImageDecodeError):
            decode_image(b"definitely not an image")


class TestEncode:
    """Encoders and their validation."""

    def test_png_signature(self, opaque_square):
        assert encode_png(opaque_square)[:8] == b"\x89PNG\r\n\x1a\n"

    @pytest.mark.parametrize("quality", [0, 101])
    def test_jpeg_quality_range(self, opaque_square, quality):
        with pytest.raises(ImageEncodeError):
            encode_jpeg(opaque_square, quality=quality)


class TestDataUrl:
    """Browser-style base64 data URLs."""

    def test_round_trip_through_data_url(self, opaque_square):
        url = to_data_url(encode_png(opaque_square), mime="image/png")

        assert url.startswith("data:image/png;base64,")
        frame = decode_data_url(url)
        np.testing.assert_array_equal(frame.pixels, opaque_square.pixels)

    def test_parse_returns_mime(self):
        mime, data = parse_data_url("data:image/jpeg;base64,AAEC")
        assert mime == "image/jpeg"
        assert data == b"\x00\x01\x02"

    @pytest.mark.parametrize(
        "url",
        [
            "not a url",
            "data:image/png,rawpayload",
            "data:image/png;base64,@@@@",
        ],
    )
    def test_malformed_urls(self, url):
        with pytest.raises(ImageDecodeError):
            decode_data_url(url)


class TestFiles:
    """load_image / save_image."""

    def test_save_and_load_png(self, tmp_path, opaque_square):
        path = save_image(opaque_square, tmp_path / "out.png")

        loaded = load_image(path)
        np.testing.assert_array_equal(loaded.pixels, opaque_square.pixels)

    def test_save_jpeg_readable_by_opencv(self, tmp_path, opaque_square):
        path = save_image(opaque_square, tmp_path / "out.jpg")

        img = cv2.imread(str(path))
        assert img.shape == (100, 100, 3)

    def test_unsupported_suffix(self, tmp_path, opaque_square):
        with pytest.raises(ImageEncodeError):
            save_image(opaque_square, tmp_path / "out.gif")

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_image(tmp_path / "missing.png")
