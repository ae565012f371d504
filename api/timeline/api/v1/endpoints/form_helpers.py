"""
Helpers for the multipart edit forms of events and persons.

Form fields arrive as strings: None means the field was not sent (leave the
column alone), "" means the field was cleared.
"""
import json
import logging
from typing import Any, Dict, List, Optional

from fastapi import UploadFile
from pydantic import ValidationError as PydanticValidationError

from timeline.core.exceptions import ValidationError
from timeline.schemas.child import ChildContent
from timeline.services.image_service import delete_image_file, process_uploaded_image, write_record_image
from timeline.utils.text_utils import clean_optional_text, parse_optional_year

logger = logging.getLogger(__name__)


def parse_year_field(raw: Optional[str], field_name: str) -> Optional[int]:
    try:
        return parse_optional_year(raw, field_name)
    except ValueError as e:
        raise ValidationError(str(e))


def parse_id_field(raw: Optional[str], field_name: str) -> Optional[int]:
    value = parse_year_field(raw, field_name)
    if value is not None and value <= 0:
        raise ValidationError(f"{field_name} is invalid: {raw!r}")
    return value


def parse_child_list(raw: Optional[str], field_name: str) -> Optional[List[ChildContent]]:
    """
    Parse a JSON array of child rows sent as a form field.

    Returns None when the field was not sent, so the stored rows stay as they are.
    """
    if raw is None:
        return None
    try:
        data = json.loads(raw) if raw.strip() else []
    except json.JSONDecodeError as e:
        raise ValidationError(f"{field_name} is not valid JSON: {e}")
    if not isinstance(data, list):
        raise ValidationError(f"{field_name} must be a JSON array")

    items = []
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise ValidationError(f"{field_name}[{index}] must be an object")
        try:
            items.append(ChildContent.model_validate(entry))
        except PydanticValidationError as e:
            raise ValidationError(f"{field_name}[{index}] is invalid: {e.errors()}")
    return items


def collect_text_fields(
    fields: Dict[str, Optional[str]],
    required: tuple = (),
) -> Dict[str, Any]:
    """Keep the text fields that were sent; blank optional text becomes None."""
    data: Dict[str, Any] = {}
    for name, raw in fields.items():
        if raw is None:
            continue
        value = clean_optional_text(raw)
        if name in required and value is None:
            raise ValidationError(f"{name} must not be empty")
        data[name] = value
    return data


def collect_year_fields(fields: Dict[str, Optional[str]]) -> Dict[str, Any]:
    """Keep the year fields that were sent; "" clears the year."""
    return {
        name: parse_year_field(raw, name)
        for name, raw in fields.items()
        if raw is not None
    }


async def read_uploaded_image(image: Optional[UploadFile]) -> Optional[bytes]:
    """
    Read and process an uploaded image without storing it.

    Returns:
        Processed JPEG bytes, or None if no file was uploaded

    Raises:
        ValidationError: If the upload is not a readable image
    """
    if image is None:
        return None
    file_content = await image.read()
    if not file_content:
        return None
    return process_uploaded_image(file_content)


def store_record_image(
    collection: str,
    record_id: int,
    image_bytes: bytes,
    previous_url: Optional[str],
) -> str:
    """Write a record's image once its database changes are committed; removes a differently named old file."""
    image_url = write_record_image(collection, record_id, image_bytes)
    if previous_url and previous_url != image_url:
        delete_image_file(previous_url)
    return image_url
