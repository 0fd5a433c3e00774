"""HEIC to JPEG normalisation for downloaded media."""

from __future__ import annotations

import io
from dataclasses import replace
from typing import Sequence

from PIL import Image
from pillow_heif import register_heif_opener

from sns_relay.core.models import MediaFile
from sns_relay.log import get_logger

logger = get_logger(__name__)

register_heif_opener()

HEIC_EXTENSIONS = frozenset({"heic", "heif"})


def heic_to_jpeg(data: bytes) -> bytes:
    with Image.open(io.BytesIO(data)) as img:
        if img.mode != "RGB":
            img = img.convert("RGB")
        out = io.BytesIO()
        img.save(out, format="JPEG", quality=95)
        return out.getvalue()


def convert_heic_to_jpeg(files: Sequence[MediaFile]) -> list[MediaFile]:
    """Return ``files`` with every HEIC image re-encoded as JPEG.

    Other files are passed through untouched. A conversion failure is logged
    and re-raised.
    """
    converted = []
    for index, file in enumerate(files):
        if file.extension.lower() not in HEIC_EXTENSIONS:
            converted.append(file)
            continue
        try:
            converted.append(replace(file, extension="jpg", data=heic_to_jpeg(file.data)))
        except Exception as e:
            logger.error("heic_conversion_failed", index=index, error=str(e))
            raise
        logger.debug("heic_converted", index=index)
    return converted
