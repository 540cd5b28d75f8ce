"""Image upload routes."""

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from paginas_amarelas.api.schemas import UploadResponse
from paginas_amarelas.models.user import User
from paginas_amarelas.services.auth import get_current_user
from paginas_amarelas.services.uploads import UploadError, UploadService, get_upload_service

router = APIRouter(prefix="/api/upload", tags=["upload"])


@router.post("", response_model=UploadResponse)
async def upload_image(
    file: UploadFile = File(...),
    user: User = Depends(get_current_user),
    uploads: UploadService = Depends(get_upload_service),
) -> UploadResponse:
    """Upload a cover or avatar image."""
    content = await file.read()

    try:
        stored = uploads.save_image(content, file.content_type)
    except UploadError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from None

    return UploadResponse(url=stored.url, filename=stored.filename)
