"""
Pytest configuration and shared fixtures.

Upstream hosts are replaced by an in-process httpx mock transport, and ffmpeg by a
fake muxer, so the suite runs without network access or an ffmpeg binary.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Tuple, Union

import httpx
import pytest
from dotenv import load_dotenv
from fastapi.testclient import TestClient

from vreddit_proxy import handlers
from vreddit_proxy.configs import settings
from vreddit_proxy.main import app
from vreddit_proxy.remuxer.artifact import TemporaryArtifact
from vreddit_proxy.remuxer.ffmpeg_muxer import MuxResult
from vreddit_proxy.utils import http_utils
from vreddit_proxy.utils.cache_utils import RESOLUTION_CACHE

# Load .env file from project root
project_root = Path(__file__).parent.parent
load_dotenv(project_root / ".env")

PUBLIC_BASE_URL = "https://v.example.dev"

REDDIT_MPD = """<?xml version="1.0" encoding="UTF-8"?>
<MPD xmlns="urn:mpeg:dash:schema:mpd:2011" minBufferTime="PT1.500S" type="static"
     mediaPresentationDuration="PT0H0M12.000S" profiles="urn:mpeg:dash:profile:isoff-on-demand:2011">
  <Period duration="PT0H0M12.000S">
    <AdaptationSet segmentAlignment="true" maxWidth="1280" maxHeight="720" contentType="video">
      <Representation id="1" mimeType="video/mp4" codecs="avc1.4d401e" width="426" height="240" bandwidth="300000">
        <BaseURL>DASH_240.mp4</BaseURL>
        <SegmentBase indexRange="822-893"><Initialization range="0-821"/></SegmentBase>
      </Representation>
      <Representation id="3" mimeType="video/mp4" codecs="avc1.4d401f" width="1280" height="720" bandwidth="1200000">
        <BaseURL>DASH_720.mp4</BaseURL>
        <SegmentBase indexRange="823-894"><Initialization range="0-822"/></SegmentBase>
      </Representation>
      <Representation id="2" mimeType="video/mp4" codecs="avc1.4d401f" width="854" height="480" bandwidth="800000">
        <BaseURL>DASH_480.mp4</BaseURL>
        <SegmentBase indexRange="823-894"><Initialization range="0-822"/></SegmentBase>
      </Representation>
    </AdaptationSet>
    <AdaptationSet segmentAlignment="true" contentType="audio">
      <Representation id="4" mimeType="audio/mp4" codecs="mp4a.40.2" audioSamplingRate="48000" bandwidth="64000">
        <AudioChannelConfiguration schemeIdUri="urn:mpeg:dash:23003:3:audio_channel_configuration:2011" value="2"/>
        <BaseURL>DASH_AUDIO_64.mp4</BaseURL>
      </Representation>
      <Representation id="5" mimeType="audio/mp4" codecs="mp4a.40.2" audioSamplingRate="48000" bandwidth="128000">
        <AudioChannelConfiguration schemeIdUri="urn:mpeg:dash:23003:3:audio_channel_configuration:2011" value="2"/>
        <BaseURL>DASH_AUDIO_128.mp4</BaseURL>
      </Representation>
    </AdaptationSet>
  </Period>
</MPD>
"""

VIDEO_ONLY_MPD = """<?xml version="1.0" encoding="UTF-8"?>
<MPD xmlns="urn:mpeg:dash:schema:mpd:2011" type="static">
  <Period>
    <AdaptationSet contentType="video">
      <Representation id="1" bandwidth="300000"><BaseURL>DASH_240.mp4</BaseURL></Representation>
      <Representation id="2" bandwidth="900000"><BaseURL>DASH_480.mp4</BaseURL></Representation>
    </AdaptationSet>
  </Period>
</MPD>
"""

AUDIO_ONLY_MPD = """<?xml version="1.0" encoding="UTF-8"?>
<MPD xmlns="urn:mpeg:dash:schema:mpd:2011" type="static">
  <Period>
    <AdaptationSet contentType="audio">
      <Representation id="1" bandwidth="128000"><BaseURL>DASH_AUDIO_128.mp4</BaseURL></Representation>
    </AdaptationSet>
  </Period>
</MPD>
"""


def _post_listing(data: dict, kind: str = "t3") -> list:
    """A Reddit post page listing whose first thing has the given kind and data."""
    first_thing = {"kind": kind, "data": data} if kind == "t3" else {"kind": kind, "data": {"id": "x"}}
    return [
        {"kind": "Listing", "data": {"children": [first_thing]}},
        {"kind": "Listing", "data": {"children": [{"kind": "t1", "data": {}}, {"kind": "more", "data": {}}]}},
    ]


def _video_post_data(media_id: str) -> dict:
    return {
        "title": "a video",
        "secure_media": {
            "reddit_video": {
                "dash_url": f"https://v.redd.it/{media_id}/DASHPlaylist.mpd?a=1700000000&v=1&f=sd",
                "hls_url": f"https://v.redd.it/{media_id}/HLSPlaylist.m3u8",
            }
        },
    }


@dataclass
class FakeUpstream:
    """Canned upstream responses keyed by URL, with a log of requested URLs."""

    routes: Dict[str, Tuple[int, Union[str, bytes, list, dict]]] = field(default_factory=dict)
    requests: List[httpx.Request] = field(default_factory=list)
    error: Exception | None = None

    def add(self, url: str, body: Union[str, bytes, list, dict], status_code: int = 200) -> None:
        self.routes[url] = (status_code, body)

    @property
    def requested_urls(self) -> List[str]:
        return [str(request.url) for request in self.requests]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        status_code, body = self.routes.get(str(request.url), (404, "Not Found"))
        if isinstance(body, (list, dict)):
            return httpx.Response(status_code, json=body)
        return httpx.Response(status_code, content=body)


@dataclass
class FakeMuxer:
    """Stands in for the ffmpeg muxer, writing a small file to the artifact path."""

    returncode: int = 0
    content: bytes = b"\x00\x00\x00\x18ftypmp42muxed-bytes"
    calls: List[Tuple[str, str, str, TemporaryArtifact]] = field(default_factory=list)

    async def __call__(self, media_id: str, video_path: str, audio_path: str, artifact: TemporaryArtifact) -> MuxResult:
        self.calls.append((media_id, video_path, audio_path, artifact))
        artifact.path.write_bytes(self.content)
        return MuxResult(returncode=self.returncode, stderr="" if self.returncode == 0 else "boom")


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "temp_dir", str(tmp_path))
    monkeypatch.setattr(settings, "public_base_url", PUBLIC_BASE_URL)
    monkeypatch.setattr(settings, "reddit_base_url", "https://reddit.com")
    monkeypatch.setattr(settings, "video_host", "https://v.redd.it")
    monkeypatch.setattr(settings, "enable_resolution_cache", True)
    RESOLUTION_CACHE.clear()
    yield settings
    RESOLUTION_CACHE.clear()


@pytest.fixture
def upstream(monkeypatch) -> FakeUpstream:
    fake = FakeUpstream()

    def _create_client(follow_redirects: bool = True, **kwargs) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(fake.handler), follow_redirects=follow_redirects)

    monkeypatch.setattr(http_utils, "create_httpx_client", _create_client)
    return fake


@pytest.fixture
def fake_muxer(monkeypatch) -> FakeMuxer:
    fake = FakeMuxer()
    monkeypatch.setattr(handlers, "mux", fake)
    return fake


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def artifact_files(tmp_path) -> Callable[[], List[Path]]:
    return lambda: sorted(tmp_path.glob("*.mp4"))


@pytest.fixture
def reddit_mpd() -> str:
    return REDDIT_MPD


@pytest.fixture
def video_only_mpd() -> str:
    return VIDEO_ONLY_MPD


@pytest.fixture
def audio_only_mpd() -> str:
    return AUDIO_ONLY_MPD


@pytest.fixture
def post_listing() -> Callable[..., list]:
    """
    Factory fixture that builds a Reddit post page listing.

    Usage:
        def test_something(post_listing, video_post):
            listing = post_listing(video_post("abc123"))
            comment_first = post_listing({}, kind="t1")
    """
    return _post_listing


@pytest.fixture
def video_post() -> Callable[[str], dict]:
    """Factory fixture for the `data` of a t3 post hosting the given v.redd.it media."""
    return _video_post_data
