"""Document upload and browsing routes."""

import os
import uuid
from typing import List, Optional
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
import aiofiles
import structlog

from tutor_pipeline.core.config import settings
from tutor_pipeline.core.dependencies import get_current_user_id, get_learner_service, get_pipeline
from tutor_pipeline.core.exceptions import DocumentProcessingError
from tutor_pipeline.curriculum.service import LearnerService
from tutor_pipeline.models.content import Document, DocumentDetail, DocumentStatus, UploadAccepted
from tutor_pipeline.processing.pipeline import DocumentPipeline

router = APIRouter()
logger = structlog.get_logger()


@router.post("/upload", response_model=UploadAccepted, status_code=201)
async def upload_document(
    file: UploadFile = File(...),
    title: Optional[str] = Form(default=None),
    user_id: int = Depends(get_current_user_id),
    pipeline: DocumentPipeline = Depends(get_pipeline),
):
    """Upload a study document and start building its curriculum."""
    if not title or not title.strip():
        raise HTTPException(status_code=400, detail="Title is required")

    file_name = os.path.basename(file.filename or "")
    file_type = os.path.splitext(file_name)[1].lstrip(".").lower()
    if file_type not in settings.ALLOWED_FILE_TYPES:
        allowed = ", ".join(t.upper() for t in settings.ALLOWED_FILE_TYPES)
        raise HTTPException(status_code=400, detail=f"Only {allowed} files are allowed")

    contents = await file.read()
    if len(contents) > settings.get_max_upload_size_bytes():
        raise HTTPException(
            status_code=400,
            detail=f"File too large. Maximum size is {settings.MAX_UPLOAD_SIZE_MB}MB"
        )

    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    file_path = os.path.join(settings.UPLOAD_DIR, f"{uuid.uuid4()}-{file_name}")
    async with aiofiles.open(file_path, "wb") as out:
        await out.write(contents)

    try:
        document_id = await pipeline.upload_and_process(
            user_id=user_id,
            title=title.strip(),
            file_name=file_name,
            file_path=file_path,
            file_size=len(contents),
        )
    except DocumentProcessingError as e:
        logger.error("Document processing failed", document_id=e.document_id, error=str(e))
        raise HTTPException(
            status_code=422,
            detail={"message": f"Document processing failed: {e}", "documentId": e.document_id},
        )

    return UploadAccepted(
        document_id=document_id,
        status=DocumentStatus.INDEXED,
        message="Document uploaded and processing started",
    )


@router.get("", response_model=List[Document])
async def list_documents(
    user_id: int = Depends(get_current_user_id),
    learner: LearnerService = Depends(get_learner_service),
):
    """List the current user's documents."""
    return await learner.list_documents(user_id)


@router.get("/{document_id}", response_model=DocumentDetail)
async def get_document(
    document_id: int,
    user_id: int = Depends(get_current_user_id),
    learner: LearnerService = Depends(get_learner_service),
):
    """Document with its concepts in learning order."""
    return await learner.get_document_detail(user_id, document_id)
