"""
Shared utilities for asset directory management.
"""
import logging
from pathlib import Path
from typing import Optional

from timeline.core.config import settings

logger = logging.getLogger(__name__)

ASSETS_URL_PREFIX = "/assets/"


def get_assets_directory() -> Path:
    """
    Get the assets directory path.

    Uses ASSETS_PATH if set (mounted volume in production), otherwise
    falls back to the api/assets directory.
    """
    if settings.assets_path:
        return Path(settings.assets_path)
    # utils/assets_utils.py -> timeline -> api, then into assets
    api_root = Path(__file__).parent.parent.parent
    return api_root / "assets"


def ensure_assets_directory() -> Path:
    """Ensure the assets directory exists and return its path."""
    assets_dir = get_assets_directory()
    assets_dir.mkdir(parents=True, exist_ok=True)
    return assets_dir


def get_path_from_asset_url(asset_url: Optional[str]) -> Optional[Path]:
    """
    Map an asset URL (e.g. "/assets/event_12.jpg") to its file path.

    Returns None for URLs that are not local assets.
    """
    if not asset_url or not asset_url.startswith(ASSETS_URL_PREFIX):
        return None
    filename = asset_url[len(ASSETS_URL_PREFIX):]
    # Reject anything that would leave the assets directory
    if not filename or "/" in filename or "\\" in filename or filename.startswith("."):
        return None
    return ensure_assets_directory() / filename
