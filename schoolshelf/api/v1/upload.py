"""Image upload endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, UploadFile, status

from schoolshelf.core.config import Config
from schoolshelf.core.dependencies import Caller, get_settings, require_caller
from schoolshelf.core.enums import AccessArea, AuditAction
from schoolshelf.core.exceptions import ValidationError
from schoolshelf.core.logging import audit
from schoolshelf.schemas import UploadResponse
from schoolshelf.services.upload_service import UploadService

router = APIRouter(tags=["upload"])


@router.post("/upload", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
def upload_image(
    file: UploadFile = File(...),
    caller: Caller = Depends(require_caller(AccessArea.ADMIN)),
    settings: Config = Depends(get_settings),
) -> UploadResponse:
    service = UploadService(
        upload_dir=settings.UPLOAD_DIR,
        max_bytes=settings.UPLOAD_MAX_BYTES,
        url_prefix=settings.UPLOAD_URL_PREFIX,
    )
    try:
        stored = service.store(file.file, file.filename, file.content_type)
    except ValidationError as exc:
        audit(
            AuditAction.UPLOAD_REJECTED.value,
            caller.log_context(),
            success=False,
            filename=file.filename,
            content_type=file.content_type,
            reason=exc.message,
        )
        raise
    return UploadResponse(**stored)
