"""
ffmpeg-based muxer.

Combines a remote video stream and a remote audio stream into one MP4 by stream
copy. ffmpeg reads both inputs straight from the media host, so nothing is
downloaded before muxing.
"""

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import List

from vreddit_proxy.configs import settings
from vreddit_proxy.errors import MuxError, MuxTimeoutError
from vreddit_proxy.remuxer.artifact import TemporaryArtifact

logger = logging.getLogger(__name__)


@dataclass
class MuxResult:
    """Outcome of a single ffmpeg run."""

    returncode: int
    stderr: str = ""

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0


def build_stream_url(media_id: str, relative_path: str) -> str:
    return f"{settings.video_host.rstrip('/')}/{media_id}/{relative_path}"


def build_ffmpeg_command(video_url: str, audio_url: str, output_path: str) -> List[str]:
    """Build the ffmpeg argument list for a lossless two-input mux."""
    return [
        settings.ffmpeg_path,
        "-hide_banner",
        "-loglevel",
        "error",
        "-user_agent",
        settings.user_agent,
        "-i",
        video_url,
        "-user_agent",
        settings.user_agent,
        "-i",
        audio_url,
        "-c:v",
        "copy",
        "-c:a",
        "copy",
        output_path,
    ]


async def _kill(process: asyncio.subprocess.Process) -> None:
    if process.returncode is None:
        with contextlib.suppress(ProcessLookupError):
            process.kill()
        await process.wait()


async def mux(media_id: str, video_path: str, audio_path: str, artifact: TemporaryArtifact) -> MuxResult:
    """
    Mux the given video and audio renditions of a media item into the artifact file.

    The exit status is reported, not judged; callers decide what a nonzero status means.

    Args:
        media_id (str): Validated media identifier.
        video_path (str): Relative path of the video rendition.
        audio_path (str): Relative path of the audio rendition.
        artifact (TemporaryArtifact): Destination file.

    Returns:
        MuxResult: The exit status and captured stderr of ffmpeg.

    Raises:
        MuxError: If ffmpeg cannot be started.
        MuxTimeoutError: If ffmpeg runs longer than `settings.mux_timeout` seconds.
    """
    command = build_ffmpeg_command(
        build_stream_url(media_id, video_path),
        build_stream_url(media_id, audio_path),
        str(artifact.path),
    )
    logger.info(f"Muxing {media_id} into {artifact.path}")

    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        logger.error(f"Failed to start ffmpeg ({settings.ffmpeg_path}): {e}")
        raise MuxError(detail=f"Failed to start ffmpeg: {e}") from e

    try:
        _, stderr = await asyncio.wait_for(process.communicate(), timeout=settings.mux_timeout or None)
    except asyncio.TimeoutError as e:
        logger.error(f"ffmpeg timed out after {settings.mux_timeout}s while muxing {media_id}")
        await _kill(process)
        raise MuxTimeoutError(detail=f"ffmpeg timed out after {settings.mux_timeout}s") from e
    except asyncio.CancelledError:
        # Request cancelled; the encoder must not outlive it.
        await _kill(process)
        raise

    result = MuxResult(returncode=process.returncode, stderr=stderr.decode("utf-8", errors="replace") if stderr else "")
    if not result.succeeded:
        logger.warning(f"ffmpeg exited with status {result.returncode} for {media_id}: {result.stderr.strip()}")
    return result
