import logging
from typing import Optional, Sequence, Union

import xmltodict

from vreddit_proxy.const import MANIFEST_LIST_TAGS
from vreddit_proxy.schemas import ManifestDocument, Representation, StreamManifest

logger = logging.getLogger(__name__)


def parse_mpd(mpd_content: Union[str, bytes]) -> dict:
    """Parses the MPD content into a dictionary, keeping repeatable elements as lists."""
    return xmltodict.parse(mpd_content, force_list=MANIFEST_LIST_TAGS)


def validate_mpd_dict(mpd_dict: dict) -> StreamManifest:
    """
    Validates a parsed MPD dictionary against the manifest model.

    Args:
        mpd_dict (dict): The output of `parse_mpd`.

    Returns:
        StreamManifest: The validated manifest.

    Raises:
        pydantic.ValidationError: If the dictionary does not have the expected shape.
    """
    return ManifestDocument.model_validate(mpd_dict).mpd


def select_best_representation(representations: Sequence[Representation]) -> str:
    """
    Picks the highest-bandwidth representation and returns its base URL.

    Ties keep the first representation seen with the maximal bandwidth.

    Args:
        representations (Sequence[Representation]): Non-empty representations of one adaptation set.

    Returns:
        str: The relative base URL of the winning representation.
    """
    best: Optional[Representation] = None
    for representation in representations:
        if best is None or representation.bandwidth > best.bandwidth:
            best = representation

    if best is None:
        raise ValueError("Cannot select a representation from an empty sequence")

    logger.debug(f"Selected representation {best.base_url} at {best.bandwidth} bps")
    return best.base_url
