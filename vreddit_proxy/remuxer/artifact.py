import logging
import time
from pathlib import Path
from typing import Optional, Union

import aiofiles.os

logger = logging.getLogger(__name__)


class TemporaryArtifact:
    """
    A muxed output file owned by a single request.

    The file name combines the media identifier with a creation timestamp, so concurrent
    requests for the same identifier never share a file. `release` removes the file and
    is safe to call any number of times; only the first call touches the filesystem.
    """

    def __init__(self, path: Path):
        self.path = path
        self._released = False

    @classmethod
    def create(cls, media_id: str, directory: Union[str, Path], tag: Optional[int] = None) -> "TemporaryArtifact":
        tag = time.time_ns() if tag is None else tag
        return cls(Path(directory) / f"{media_id}_{tag}.mp4")

    @property
    def released(self) -> bool:
        return self._released

    async def release(self) -> None:
        if self._released:
            return
        self._released = True
        try:
            await aiofiles.os.remove(self.path)
            logger.debug(f"Removed artifact {self.path}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error(f"Failed to remove artifact {self.path}: {e}")

    def __repr__(self) -> str:
        return f"TemporaryArtifact({str(self.path)!r})"
