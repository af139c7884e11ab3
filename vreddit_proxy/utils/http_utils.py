import logging
import typing

import anyio
import httpx
from starlette.requests import Request
from starlette.responses import FileResponse
from starlette.types import Receive, Scope, Send

from vreddit_proxy.configs import settings
from vreddit_proxy.const import OUTPUT_MEDIA_TYPE
from vreddit_proxy.errors import UpstreamError
from vreddit_proxy.remuxer.artifact import TemporaryArtifact

logger = logging.getLogger(__name__)


def create_httpx_client(follow_redirects: bool = True, **kwargs) -> httpx.AsyncClient:
    """
    Create an HTTPX AsyncClient configured from the transport settings.

    Args:
        follow_redirects (bool): Whether to follow 3xx redirects automatically.
        **kwargs: Additional AsyncClient keyword arguments.

    Returns:
        httpx.AsyncClient: Configured client.
    """
    mounts = settings.transport_config.get_mounts()
    kwargs.setdefault("timeout", settings.transport_config.timeout)
    kwargs.setdefault("verify", not settings.transport_config.disable_ssl_verification_globally)
    return httpx.AsyncClient(mounts=mounts, follow_redirects=follow_redirects, **kwargs)


def get_upstream_headers(headers: typing.Optional[dict] = None) -> dict:
    """Default headers for upstream requests, merged with any per-request headers."""
    request_headers = {"user-agent": settings.user_agent}
    request_headers.update(headers or {})
    return request_headers


async def fetch_upstream(url: str, headers: typing.Optional[dict] = None) -> httpx.Response:
    """
    Fetch an upstream document with a single GET request.

    Non-2xx responses are returned as-is; deciding what they mean is left to the caller.

    Args:
        url (str): Target URL.
        headers (dict, optional): Extra request headers.

    Returns:
        httpx.Response: The fully read response.

    Raises:
        UpstreamError: If the upstream host cannot be reached or times out.
    """
    async with create_httpx_client() as client:
        try:
            return await client.get(url, headers=get_upstream_headers(headers))
        except httpx.TimeoutException as e:
            logger.warning(f"Timeout while fetching {url}")
            raise UpstreamError(status_code=504, detail=f"Timeout while fetching {url}") from e
        except httpx.RequestError as e:
            logger.error(f"Error fetching {url}: {e}")
            raise UpstreamError(detail=f"Error fetching {url}: {e}") from e


def get_original_scheme(request: Request) -> str:
    """
    Determine the original scheme (http or https) of the incoming request.

    Args:
        request (Request): Incoming HTTP request.

    Returns:
        str: 'http' or 'https'
    """
    # Chained proxies append their own scheme; the first entry is the client-facing one.
    forwarded_proto = request.headers.get("X-Forwarded-Proto", "").split(",")[0].strip().lower()
    if forwarded_proto:
        return forwarded_proto

    if request.url.scheme == "https" or request.headers.get("X-Forwarded-Ssl") == "on":
        return "https"

    if request.headers.get("X-Forwarded-Protocol") == "https" or request.headers.get("X-Url-Scheme") == "https":
        return "https"

    return "http"


def get_public_base_url(request: Request) -> str:
    """The base URL clients should use to reach this service, without a trailing slash."""
    if settings.public_base_url:
        return settings.public_base_url.rstrip("/")
    return str(request.base_url.replace(scheme=get_original_scheme(request))).rstrip("/")


class ArtifactResponse(FileResponse):
    """
    Streams a muxed artifact to the client and releases it once the response is over.

    The artifact is released whether the transfer completes, fails, or is aborted by the client.
    """

    def __init__(self, artifact: TemporaryArtifact, **kwargs) -> None:
        kwargs.setdefault("media_type", OUTPUT_MEDIA_TYPE)
        super().__init__(artifact.path, **kwargs)
        self.artifact = artifact

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        except (ConnectionResetError, anyio.BrokenResourceError):
            logger.info(f"Client disconnected while receiving {self.artifact.path.name}")
        finally:
            await self.artifact.release()
