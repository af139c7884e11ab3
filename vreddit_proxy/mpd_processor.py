import logging
from xml.parsers.expat import ExpatError

from pydantic import ValidationError

from vreddit_proxy.configs import settings
from vreddit_proxy.const import MANIFEST_FILENAME, MEDIA_ID_PATTERN
from vreddit_proxy.errors import InvalidMediaIdError, ManifestValidationError
from vreddit_proxy.schemas import StreamManifest
from vreddit_proxy.utils.http_utils import fetch_upstream
from vreddit_proxy.utils.mpd_utils import parse_mpd, validate_mpd_dict

logger = logging.getLogger(__name__)


def validate_media_id(media_id: str) -> str:
    """
    Ensure a media identifier is safe to place in a URL.

    Raises:
        InvalidMediaIdError: If the identifier is not lowercase alphanumeric.
    """
    if not media_id or not MEDIA_ID_PATTERN.match(media_id):
        raise InvalidMediaIdError(detail=f"Invalid media identifier: {media_id!r}")
    return media_id


def build_manifest_url(media_id: str) -> str:
    return f"{settings.video_host.rstrip('/')}/{media_id}/{MANIFEST_FILENAME}"


async def fetch_manifest(media_id: str) -> StreamManifest:
    """
    Fetch and validate the DASH manifest of a media item.

    Args:
        media_id (str): Validated media identifier.

    Returns:
        StreamManifest: The validated manifest.

    Raises:
        ManifestValidationError: If the manifest is missing, unparsable or of an unexpected shape.
        UpstreamError: If the media host cannot be reached.
    """
    manifest_url = build_manifest_url(media_id)
    response = await fetch_upstream(manifest_url)

    if not response.is_success:
        logger.warning(f"Manifest request for {media_id} returned HTTP {response.status_code}")
        raise ManifestValidationError(detail=f"HTTP {response.status_code} from {manifest_url}")

    try:
        return validate_mpd_dict(parse_mpd(response.content))
    except (ExpatError, ValidationError) as e:
        logger.warning(f"Invalid manifest for {media_id}: {e}")
        raise ManifestValidationError(detail=str(e)) from e
