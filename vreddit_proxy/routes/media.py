from fastapi import APIRouter, Request

from vreddit_proxy.handlers import handle_media_request, handle_post_request

media_router = APIRouter()


@media_router.get("/{media_id}", summary="Serve a media item as a single MP4")
async def media_endpoint(media_id: str):
    """
    Mux the best audio and video renditions of a media item and stream the result.

    Media items without audio are redirected to their best video rendition.
    """
    return await handle_media_request(media_id)


@media_router.get("/{post_path:path}", summary="Resolve a post to its media endpoint")
async def post_endpoint(request: Request, post_path: str):
    """Resolve a post path to the media item of its video and redirect to it."""
    return await handle_post_request(request, post_path)
