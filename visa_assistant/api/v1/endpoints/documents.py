"""Document endpoints: upload, signed upload URLs, listing and deletion."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status

from visa_assistant.api.v1.dependencies import get_document_service
from visa_assistant.api.v1.errors import http_error
from visa_assistant.core.auth import get_current_user
from visa_assistant.core.exceptions import AppError
from visa_assistant.schemas.auth import CurrentUser
from visa_assistant.schemas.documents import DocumentResponse, UploadResult
from visa_assistant.services.document_service import DocumentService
from visa_assistant.utils.logging import get_logger
from visa_assistant.utils.responses import create_api_response

LOGGER = get_logger(__name__)

router = APIRouter()

UserDep = Annotated[CurrentUser, Depends(get_current_user)]
ServiceDep = Annotated[DocumentService, Depends(get_document_service)]


@router.post(
    "/upload",
    response_model=dict,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a document to an application",
    operation_id="upload_document",
)
async def upload_document(
    request: Request,
    current_user: UserDep,
    service: ServiceDep,
    application_id: UUID = Form(...),
    document_type: str = Form(...),
    file: UploadFile = File(..., description="PDF or image of the document"),
) -> dict:
    """Store the file and queue extraction; returns before extraction runs."""
    content = await file.read()
    try:
        document, queued = await service.upload_document(
            application_id=application_id,
            document_type=document_type,
            filename=file.filename or "upload",
            content=content,
            content_type=file.content_type or "application/octet-stream",
            user=current_user,
        )
    except AppError as e:
        raise http_error(e, request) from e
    return create_api_response(
        data=UploadResult(document=DocumentResponse.model_validate(document), processing_queued=queued),
        message="Document uploaded successfully",
        request=request,
    )


@router.post(
    "/upload-url",
    response_model=dict,
    summary="Issue a signed URL for a direct upload",
    operation_id="create_document_upload_url",
)
async def create_upload_url(
    request: Request,
    current_user: UserDep,
    service: ServiceDep,
    application_id: UUID = Form(...),
    document_type: str = Form(...),
    filename: str = Form(...),
) -> dict:
    try:
        signed = await service.get_upload_url(application_id, document_type, filename, current_user)
    except AppError as e:
        raise http_error(e, request) from e
    return create_api_response(data=signed, message="Upload URL created", request=request)


@router.get(
    "/",
    response_model=dict,
    summary="List the documents of an application",
    operation_id="list_documents",
)
async def list_documents(
    request: Request,
    application_id: UUID,
    current_user: UserDep,
    service: ServiceDep,
) -> dict:
    try:
        documents = await service.list_documents(application_id, current_user)
    except AppError as e:
        raise http_error(e, request) from e
    return create_api_response(
        data={
            "items": [DocumentResponse.model_validate(d).model_dump(mode="json") for d in documents],
            "total": len(documents),
        },
        message=f"Retrieved {len(documents)} documents",
        request=request,
    )


@router.delete(
    "/{document_id}",
    response_model=dict,
    summary="Delete a document and its stored file",
    operation_id="delete_document",
)
async def delete_document(
    request: Request,
    document_id: UUID,
    current_user: UserDep,
    service: ServiceDep,
) -> dict:
    try:
        await service.delete_document(document_id, current_user)
    except AppError as e:
        raise http_error(e, request) from e
    return create_api_response(data={"id": str(document_id)}, message="Document deleted", request=request)
