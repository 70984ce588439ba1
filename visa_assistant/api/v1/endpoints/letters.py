"""Cover letter, generated document and export endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse, Response

from visa_assistant.api.v1.dependencies import get_letter_service, get_text_transform_service
from visa_assistant.api.v1.errors import http_error
from visa_assistant.core.auth import get_current_user
from visa_assistant.core.exceptions import AppError
from visa_assistant.schemas.auth import CurrentUser
from visa_assistant.schemas.letters import (
    GeneratedDocumentResponse,
    GeneratedDocumentType,
    GeneratedDocumentUpdate,
    LetterValidationResponse,
)
from visa_assistant.schemas.transform import TransformRequest
from visa_assistant.services.ai.text_transform_service import TextTransformService
from visa_assistant.services.letter_service import LetterService
from visa_assistant.utils.logging import get_logger
from visa_assistant.utils.responses import create_api_response, create_error_detail

LOGGER = get_logger(__name__)

router = APIRouter()

UserDep = Annotated[CurrentUser, Depends(get_current_user)]
ServiceDep = Annotated[LetterService, Depends(get_letter_service)]

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def _attachment(filename: str) -> dict:
    return {"Content-Disposition": f'attachment; filename="{filename}"'}


@router.get(
    "/{application_id}/validate",
    response_model=dict,
    summary="Validate the cover letter context",
    operation_id="validate_cover_letter",
)
async def validate_letter(
    request: Request,
    application_id: UUID,
    current_user: UserDep,
    service: ServiceDep,
) -> dict:
    try:
        result, context = await service.validate_letter(application_id, current_user)
    except AppError as e:
        raise http_error(e, request) from e
    return create_api_response(
        data=LetterValidationResponse(
            valid=result.valid,
            errors=result.errors,
            warnings=result.warnings,
            context=context,
        ),
        message="Letter is ready" if result.valid else f"{len(result.errors)} validation errors",
        request=request,
    )


@router.post(
    "/{application_id}/generate",
    response_model=dict,
    status_code=status.HTTP_201_CREATED,
    summary="Generate and store the cover letter",
    operation_id="generate_cover_letter",
)
async def generate_cover_letter(
    request: Request,
    application_id: UUID,
    current_user: UserDep,
    service: ServiceDep,
) -> dict:
    try:
        document = await service.generate_cover_letter(application_id, current_user)
    except AppError as e:
        raise http_error(e, request) from e
    return create_api_response(
        data=GeneratedDocumentResponse.model_validate(document),
        message=f"Cover letter generated (version {document.version})",
        request=request,
    )


@router.get(
    "/{application_id}/documents",
    response_model=dict,
    summary="Current version of every generated document",
    operation_id="list_generated_documents",
)
async def list_generated_documents(
    request: Request,
    application_id: UUID,
    current_user: UserDep,
    service: ServiceDep,
) -> dict:
    try:
        documents = await service.get_current_documents(application_id, current_user)
    except AppError as e:
        raise http_error(e, request) from e
    return create_api_response(
        data=[GeneratedDocumentResponse.model_validate(d).model_dump(mode="json") for d in documents],
        message=f"Retrieved {len(documents)} generated documents",
        request=request,
    )


@router.put(
    "/{application_id}/documents/{document_type}",
    response_model=dict,
    summary="Save edited text as a new version",
    operation_id="save_generated_document",
)
async def save_generated_document(
    request: Request,
    application_id: UUID,
    document_type: GeneratedDocumentType,
    payload: GeneratedDocumentUpdate,
    current_user: UserDep,
    service: ServiceDep,
) -> dict:
    try:
        document = await service.save_document(application_id, document_type, payload.content, current_user)
    except AppError as e:
        raise http_error(e, request) from e
    return create_api_response(
        data=GeneratedDocumentResponse.model_validate(document),
        message=f"Saved {document_type.value} version {document.version}",
        request=request,
    )


@router.get(
    "/{application_id}/pdf",
    summary="Combined cover letter PDF",
    operation_id="download_combined_pdf",
    response_class=Response,
)
async def download_combined_pdf(
    request: Request,
    application_id: UUID,
    current_user: UserDep,
    service: ServiceDep,
) -> Response:
    try:
        pdf_bytes = await service.render_combined_pdf(application_id, current_user)
    except AppError as e:
        raise http_error(e, request) from e
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers=_attachment(f"cover-letter-{application_id}.pdf"),
    )


@router.get(
    "/{application_id}/i539",
    summary="Pre-filled Form I-539",
    operation_id="download_i539",
    response_class=Response,
)
async def download_i539(
    request: Request,
    application_id: UUID,
    current_user: UserDep,
    service: ServiceDep,
) -> Response:
    """Return the filled form, or the blank form with ``X-Form-Filled: false``.

    When no form could be obtained at all the response is a 502 problem body.
    """
    try:
        result = await service.fill_i539(application_id, current_user)
    except AppError as e:
        raise http_error(e, request) from e

    if not result.success or not result.pdf_bytes:
        error_detail = create_error_detail(
            title="Form Unavailable",
            status=status.HTTP_502_BAD_GATEWAY,
            detail=result.error or "Form I-539 could not be retrieved",
            request=request,
        )
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=error_detail.model_dump(mode="json"))

    headers = _attachment(f"i-539-{application_id}.pdf")
    headers["X-Form-Filled"] = "true" if result.filled else "false"
    if result.method:
        headers["X-Form-Method"] = result.method
    if result.error:
        headers["X-Form-Error"] = result.error
    return Response(content=result.pdf_bytes, media_type="application/pdf", headers=headers)


@router.get(
    "/{application_id}/fill-guide",
    summary="Printable guide for filling Form I-539 by hand",
    operation_id="get_i539_fill_guide",
    response_class=HTMLResponse,
)
async def get_fill_guide(
    request: Request,
    application_id: UUID,
    current_user: UserDep,
    service: ServiceDep,
) -> HTMLResponse:
    try:
        html = await service.fill_guide(application_id, current_user)
    except AppError as e:
        raise http_error(e, request) from e
    return HTMLResponse(content=html)


@router.get(
    "/{application_id}/docx",
    summary="Application package as a Word document",
    operation_id="download_docx_package",
    response_class=Response,
)
async def download_docx(
    request: Request,
    application_id: UUID,
    current_user: UserDep,
    service: ServiceDep,
) -> Response:
    try:
        content = await service.export_docx(application_id, current_user)
    except AppError as e:
        raise http_error(e, request) from e
    return Response(
        content=content,
        media_type=DOCX_MEDIA_TYPE,
        headers=_attachment(f"application-{application_id}.docx"),
    )


@router.post(
    "/{application_id}/transform",
    response_model=dict,
    summary="Rewrite selected letter text with the AI assistant",
    operation_id="transform_selection",
)
async def transform_selection(
    request: Request,
    application_id: UUID,
    payload: TransformRequest,
    current_user: UserDep,
    service: Annotated[TextTransformService, Depends(get_text_transform_service)],
) -> dict:
    """Modes: rewrite, formal, uscis, simplify. The model is told not to add facts."""
    try:
        text = await service.transform(application_id, payload.text, payload.command, current_user)
    except AppError as e:
        raise http_error(e, request) from e
    return create_api_response(
        data={"text": text, "command": payload.command.value},
        message="Selection transformed",
        request=request,
    )
