"""
Image service for event and person pictures.
"""
import io
import logging
from pathlib import Path
from typing import Optional

from PIL import Image as PILImage, ImageOps, UnidentifiedImageError

from timeline.core.exceptions import PersistenceError, ValidationError
from timeline.utils.assets_utils import ASSETS_URL_PREFIX, ensure_assets_directory, get_path_from_asset_url

logger = logging.getLogger(__name__)

MAX_IMAGE_DIMENSION = 1200


def resize_to_max_dimension(img: PILImage.Image, max_dimension: int = MAX_IMAGE_DIMENSION) -> PILImage.Image:
    """
    Shrink an image so neither side exceeds max_dimension, keeping its aspect ratio.

    Smaller images are returned unchanged.
    """
    width, height = img.size
    longest = max(width, height)
    if longest <= max_dimension:
        return img
    scale = max_dimension / longest
    new_size = (max(1, round(width * scale)), max(1, round(height * scale)))
    return img.resize(new_size, PILImage.Resampling.LANCZOS)


def process_uploaded_image(file_content: bytes) -> bytes:
    """
    Process an uploaded image file: validate, apply EXIF correction, and resize.

    Args:
        file_content: Raw image file bytes

    Returns:
        Processed image bytes (JPEG)

    Raises:
        ValidationError: If the bytes are not a readable image
    """
    if not file_content:
        raise ValidationError("Invalid image file: empty upload")
    try:
        img = PILImage.open(io.BytesIO(file_content))
        # Apply EXIF orientation correction to preserve original orientation
        img = ImageOps.exif_transpose(img)
        # Convert to RGB if necessary (handles RGBA, P, etc.)
        if img.mode != 'RGB':
            img = img.convert('RGB')
    except (UnidentifiedImageError, OSError) as e:
        raise ValidationError(f"Invalid image file: {str(e)}")

    img = resize_to_max_dimension(img)

    output = io.BytesIO()
    img.save(output, format="JPEG", quality=90)
    return output.getvalue()


def get_record_image_path(collection: str, record_id: int) -> Path:
    """File path for a record's image, e.g. assets/event_12.jpg."""
    return ensure_assets_directory() / f"{collection}_{record_id}.jpg"


def get_record_image_url(collection: str, record_id: int) -> str:
    """Asset URL for a record's image, e.g. /assets/event_12.jpg."""
    return f"{ASSETS_URL_PREFIX}{collection}_{record_id}.jpg"


def write_record_image(collection: str, record_id: int, image_bytes: bytes) -> str:
    """
    Store already processed image bytes for an event or person.

    The file is written next to its target and renamed into place, so a
    failed write never leaves a truncated image behind.

    Returns:
        Asset URL of the stored image (e.g. "/assets/event_12.jpg")
    """
    image_path = get_record_image_path(collection, record_id)
    tmp_path = image_path.with_name(f".{image_path.name}.tmp")
    try:
        tmp_path.write_bytes(image_bytes)
        tmp_path.replace(image_path)
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        logger.error(f"Failed to save image to {image_path}: {str(e)}")
        raise PersistenceError(f"Failed to save image: {str(e)}")
    logger.info(f"Saved image to {image_path}")
    return get_record_image_url(collection, record_id)


def delete_image_file(image_url: Optional[str]) -> bool:
    """
    Delete an image file from the assets directory if it's a local asset.

    Returns:
        True if file was deleted, False otherwise
    """
    image_path = get_path_from_asset_url(image_url)
    if not image_path or not image_path.exists():
        return False
    try:
        image_path.unlink()
        logger.info(f"Deleted image file: {image_path}")
        return True
    except OSError as e:
        logger.warning(f"Failed to delete image file {image_path}: {str(e)}")
        return False
