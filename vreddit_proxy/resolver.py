import logging
import re
from typing import List

from pydantic import ValidationError

from vreddit_proxy.configs import settings
from vreddit_proxy.const import MANIFEST_FILENAME
from vreddit_proxy.errors import InvalidMediaIdError, ResolutionError
from vreddit_proxy.mpd_processor import validate_media_id
from vreddit_proxy.schemas import Listing, PostListing, PostThing
from vreddit_proxy.utils.cache_utils import get_cached_manifest_url, set_cached_manifest_url
from vreddit_proxy.utils.http_utils import fetch_upstream

logger = logging.getLogger(__name__)


def canonicalize_post_url(path: str) -> str:
    """Build the canonical post URL for a request path, e.g. `r/videos/comments/abc/title`."""
    path = path.strip("/")
    if not path:
        raise ResolutionError.bad_url("Empty post path")
    return f"{settings.reddit_base_url.rstrip('/')}/{path}"


def manifest_url_pattern() -> re.Pattern:
    return re.compile(rf"{re.escape(settings.video_host.rstrip('/'))}/(.*)/{re.escape(MANIFEST_FILENAME)}")


def extract_manifest_url(listings: List[Listing]) -> str:
    """
    Pull the video manifest URL out of a post listing.

    Only the first thing of the first listing is examined. Cross-posts resolve to the
    media of their first parent post.

    Raises:
        ResolutionError: If the first thing is not a post or carries no video.
    """
    if not listings or not listings[0].data.children:
        raise ResolutionError.unexpected("Listing has no children")

    thing = listings[0].data.children[0]
    if not isinstance(thing, PostThing):
        raise ResolutionError.unexpected(f"Expected a t3 post, got {thing.kind!r}")

    dash_url = thing.data.dash_url
    if dash_url is None:
        kind = "cross-post" if thing.data.is_crosspost else "post"
        raise ResolutionError.unexpected(f"The {kind} has no attached video")
    return dash_url


def extract_media_id(manifest_url: str) -> str:
    """
    Recover the media identifier from a manifest URL.

    Raises:
        ResolutionError: If the URL is not a manifest URL or names an invalid identifier.
    """
    match = manifest_url_pattern().match(manifest_url)
    if not match:
        raise ResolutionError.unexpected(f"Unrecognized manifest URL: {manifest_url}")

    try:
        return validate_media_id(match.group(1))
    except InvalidMediaIdError as e:
        raise ResolutionError.unexpected(e.detail) from e


async def fetch_manifest_url(post_url: str) -> str:
    """
    Fetch the listing of a post and extract its manifest URL.

    Raises:
        ResolutionError: If the listing is unusable.
        UpstreamError: If the listing host cannot be reached.
    """
    listing_url = f"{post_url}.json"
    logger.info(f"Fetching listing {listing_url}")
    response = await fetch_upstream(listing_url)

    if not response.is_success:
        logger.warning(f"Listing request {listing_url} returned HTTP {response.status_code}")
        raise ResolutionError.bad_url(f"HTTP {response.status_code} from {listing_url}")

    try:
        listings = PostListing.validate_python(response.json())
    except (ValueError, ValidationError) as e:
        logger.warning(f"Invalid listing at {listing_url}: {e}")
        raise ResolutionError.bad_url(str(e)) from e

    return extract_manifest_url(listings)


async def resolve_post(path: str) -> str:
    """
    Resolve a post path to the media identifier of its video.

    Args:
        path (str): Post path relative to the Reddit base URL.

    Returns:
        str: The media identifier.

    Raises:
        ResolutionError: With status 400 for unusable listings, 500 for unexpected listing shapes.
        UpstreamError: If the listing host cannot be reached.
    """
    post_url = canonicalize_post_url(path)

    manifest_url = get_cached_manifest_url(post_url)
    if manifest_url:
        logger.debug(f"Resolution cache hit for {post_url}")
    else:
        manifest_url = await fetch_manifest_url(post_url)
        set_cached_manifest_url(post_url, manifest_url)

    return extract_media_id(manifest_url)
