import logging

from fastapi import Request, Response
from fastapi.responses import PlainTextResponse, RedirectResponse

from .configs import settings
from .const import INTERNAL_ERROR_MESSAGE
from .errors import MediaProxyError, MissingVideoError, MuxError
from .mpd_processor import fetch_manifest, validate_media_id
from .remuxer.artifact import TemporaryArtifact
from .remuxer.ffmpeg_muxer import build_stream_url, mux
from .resolver import resolve_post
from .utils.http_utils import ArtifactResponse, get_public_base_url
from .utils.mpd_utils import select_best_representation

logger = logging.getLogger(__name__)


def handle_exceptions(exception: Exception) -> Response:
    """
    Handle exceptions and return appropriate HTTP responses.

    Args:
        exception (Exception): The exception that was raised.

    Returns:
        Response: A short plain-text response corresponding to the exception type.
    """
    if isinstance(exception, MediaProxyError):
        logger.error(f"{type(exception).__name__} ({exception.status_code}): {exception}")
        return PlainTextResponse(exception.message, status_code=exception.status_code)

    logger.exception(f"Internal server error while handling request: {exception}")
    return PlainTextResponse(INTERNAL_ERROR_MESSAGE, status_code=500)


async def handle_media_request(media_id: str) -> Response:
    """
    Serve a media item as a single MP4.

    The best video and audio renditions of the manifest are muxed into a temporary file,
    which is streamed back and then removed. Items without audio are redirected to the
    best video rendition directly.

    Args:
        media_id (str): The media identifier from the request path.

    Returns:
        Response: The muxed file, or a redirect to the video-only stream.
    """
    try:
        validate_media_id(media_id)
        manifest = await fetch_manifest(media_id)

        video_set = manifest.find_adaptation_set("video")
        if video_set is None:
            raise MissingVideoError(detail=f"Manifest of {media_id} has no video adaptation set")
        best_video = select_best_representation(video_set.representations)

        audio_set = manifest.find_adaptation_set("audio")
        if audio_set is None:
            logger.info(f"No audio for {media_id}, redirecting to video stream")
            return RedirectResponse(build_stream_url(media_id, best_video), status_code=302)
        best_audio = select_best_representation(audio_set.representations)

        artifact = TemporaryArtifact.create(media_id, settings.temp_dir)
        try:
            result = await mux(media_id, best_video, best_audio, artifact)
            if not result.succeeded:
                raise MuxError(detail=f"ffmpeg exited with status {result.returncode}")
            return ArtifactResponse(artifact, filename=f"{media_id}.mp4", content_disposition_type="inline")
        except BaseException:
            await artifact.release()
            raise
    except Exception as e:
        return handle_exceptions(e)


async def handle_post_request(request: Request, post_path: str) -> Response:
    """
    Resolve a post path and redirect to the media endpoint of its video.

    Args:
        request (Request): The incoming request, used to build the redirect target.
        post_path (str): The post path, e.g. `r/videos/comments/abc123/title`.

    Returns:
        Response: A redirect to `/{media_id}` on this service.
    """
    try:
        media_id = await resolve_post(post_path)
        target = f"{get_public_base_url(request)}/{media_id}"
        logger.info(f"Resolved {post_path} to {media_id}")
        return RedirectResponse(target, status_code=302)
    except Exception as e:
        return handle_exceptions(e)
