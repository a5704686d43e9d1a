"""
Groceree Backend - Image Download Route
=========================================

Serves blobs written by the blob store at the URLs it hands out
(`/images/<key>`). Public and unauthenticated so <img> tags can load them.
"""

from fastapi import APIRouter
from fastapi.responses import FileResponse

from groceree.exceptions import NotFoundError
from groceree.schemas.common import ErrorResponse
from groceree.services.blob_service import blob_store

router = APIRouter(tags=["Images"])


@router.get(
    "/images/{key:path}",
    response_class=FileResponse,
    responses={
        200: {"description": "Image file"},
        400: {"description": "Key escapes the storage root", "model": ErrorResponse},
        404: {"description": "Image not found", "model": ErrorResponse},
    },
    summary="Download a stored image",
)
async def get_image(key: str) -> FileResponse:
    # path_for rejects keys such as "../../etc/passwd" with a 400
    path = blob_store.path_for(key)
    if not path.is_file():
        raise NotFoundError(message="Image not found", resource="image", resource_id=key)

    # FileResponse guesses the media type from the extension and sets ETag
    # and Last-Modified
    return FileResponse(
        path=path,
        headers={"Cache-Control": "public, max-age=86400"},
    )
