import logging
from typing import Annotated

from fastapi import APIRouter, Body, Depends, File, Query, UploadFile
from pydantic import BaseModel, ConfigDict, Field
from starlette.concurrency import run_in_threadpool

from travel_journal.core.errors import BadRequestError, NotFoundError
from travel_journal.core.storage import filename_from_url, generate_filename, get_image_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Images"])


class DeleteImageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    image_url: str | None = Field(default=None, alias="imageUrl")


# --- upload an image ---
@router.post(
    "/image-upload",
    summary="Upload a story image",
    responses={400: {"description": "No file sent, or the file is not an image"}},
)
async def upload_image(
    image: UploadFile | None = File(None),
    store=Depends(get_image_store),
):
    if image is None or not image.filename:
        raise BadRequestError("No images uploaded")

    if not (image.content_type or "").startswith("image/"):
        raise BadRequestError("Only images are allowed")

    content = await image.read()
    filename = generate_filename(image.filename)
    # disk and S3 writes block, keep them off the event loop
    image_url = await run_in_threadpool(store.save, filename, content, image.content_type)

    logger.info("Stored image %s (%d bytes)", filename, len(content))
    return {"error": False, "imageUrl": image_url, "message": "Image Uploaded Successfully"}


# --- delete an image by url or name ---
@router.delete(
    "/delete-image",
    summary="Delete an uploaded image",
    responses={
        400: {"description": "imageUrl was not provided"},
        404: {"description": "No stored image has that name"},
    },
)
def delete_image(
    image_url: Annotated[str | None, Query(alias="imageUrl")] = None,
    payload: Annotated[DeleteImageRequest | None, Body()] = None,
    store=Depends(get_image_store),
):
    if not image_url and payload is not None:
        image_url = payload.image_url
    if not image_url:
        raise BadRequestError("imageUrl parameter is required")

    # only the basename counts, nothing outside the upload area is reachable
    filename = filename_from_url(image_url)
    if not store.delete(filename):
        raise NotFoundError("Image not found")

    logger.info("Deleted image %s", filename)
    return {"error": False, "message": "Image deleted successfully"}
