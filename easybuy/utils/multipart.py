"""
utils/multipart.py
-------------------

Builds the ``multipart/form-data`` body used to submit an order review.

The body always contains the ``comment`` field, then ``rating``, then
up to five ``images`` parts in the caller's order. Images are
re‑encoded as JPEG with Pillow before framing. The function is pure:
it performs no I/O and returns the full body as bytes.
"""

from __future__ import annotations

import io
import json
import uuid
from typing import Any, Iterable, List, Union

from PIL import Image, UnidentifiedImageError

from easybuy.core.errors import ImageEncodingError
from easybuy.logging_config import logger

LINE_BREAK = b"\r\n"
MAX_IMAGES = 5
JPEG_QUALITY = 80

ImageInput = Union[Image.Image, bytes, bytearray]


def new_boundary() -> str:
    """Return a fresh boundary string."""
    return f"Boundary-{uuid.uuid4()}"


def content_type_for(boundary: str) -> str:
    return f"multipart/form-data; boundary={boundary}"


def encode_jpeg(image: ImageInput, quality: int = JPEG_QUALITY) -> bytes:
    """Encode ``image`` as JPEG.

    Raw bytes are opened with Pillow first, so any format Pillow reads
    is accepted. Images with an alpha channel or a palette are
    converted to RGB since JPEG cannot store them.

    :raises ValueError: if the input cannot be read or encoded
    """
    try:
        if isinstance(image, (bytes, bytearray)):
            image = Image.open(io.BytesIO(bytes(image)))
        if image.mode not in ("RGB", "L"):
            image = image.convert("RGB")
        buffer = io.BytesIO()
        image.save(buffer, format="JPEG", quality=quality)
    except (UnidentifiedImageError, OSError, AttributeError) as exc:
        raise ValueError(f"cannot encode image: {exc}") from exc
    return buffer.getvalue()


def _text_part(boundary: str, name: str, value: str) -> bytes:
    return b"".join([
        f"--{boundary}".encode("utf-8"), LINE_BREAK,
        f'Content-Disposition: form-data; name="{name}"'.encode("utf-8"), LINE_BREAK,
        LINE_BREAK,
        value.encode("utf-8"), LINE_BREAK,
    ])


def _image_part(boundary: str, name: str, data: bytes, index: int) -> bytes:
    return b"".join([
        f"--{boundary}".encode("utf-8"), LINE_BREAK,
        f'Content-Disposition: form-data; name="{name}"; filename="image{index}.jpg"'.encode("utf-8"), LINE_BREAK,
        b"Content-Type: image/jpeg", LINE_BREAK,
        LINE_BREAK,
        data, LINE_BREAK,
    ])


def encode_review_form(
    comment: str,
    rating: int,
    images: Iterable[Any],
    boundary: str,
    *,
    max_images: int = MAX_IMAGES,
    quality: int = JPEG_QUALITY,
) -> bytes:
    """Serialise a review into a multipart body.

    Images beyond ``max_images`` are dropped. An image that cannot be
    encoded fails the whole body with :class:`ImageEncodingError`
    rather than being left out.

    :param comment: review text
    :param rating: star rating, sent as a decimal string
    :param images: Pillow images or encoded image bytes
    :param boundary: multipart boundary, see :func:`new_boundary`
    :return: the complete request body
    """
    images = list(images)
    if len(images) > max_images:
        logger.debug(json.dumps({
            "event": "review_images_truncated",
            "received": len(images),
            "kept": max_images,
        }))
    parts: List[bytes] = [
        _text_part(boundary, "comment", comment),
        _text_part(boundary, "rating", str(int(rating))),
    ]
    for index, image in enumerate(images[:max_images]):
        try:
            data = encode_jpeg(image, quality)
        except ValueError as exc:
            logger.warning(json.dumps({
                "event": "review_image_encode_failed",
                "index": index,
                "detail": str(exc),
            }))
            raise ImageEncodingError(index) from exc
        parts.append(_image_part(boundary, "images", data, index))
    parts.append(f"--{boundary}--".encode("utf-8") + LINE_BREAK)
    return b"".join(parts)
