"""Application endpoints: CRUD, document requirements, aggregation and reprocessing."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from visa_assistant.api.v1.dependencies import get_application_service
from visa_assistant.api.v1.errors import http_error
from visa_assistant.core.auth import get_current_user
from visa_assistant.core.exceptions import AppError
from visa_assistant.schemas.application import ApplicationCreate, ApplicationResponse, ApplicationUpdate
from visa_assistant.schemas.auth import CurrentUser
from visa_assistant.services.application_service import ApplicationService
from visa_assistant.utils.logging import get_logger
from visa_assistant.utils.responses import create_api_response

LOGGER = get_logger(__name__)

router = APIRouter()

UserDep = Annotated[CurrentUser, Depends(get_current_user)]
ServiceDep = Annotated[ApplicationService, Depends(get_application_service)]


@router.post(
    "/",
    response_model=dict,
    status_code=status.HTTP_201_CREATED,
    summary="Create a draft application",
    operation_id="create_application",
)
async def create_application(
    request: Request,
    payload: ApplicationCreate,
    current_user: UserDep,
    service: ServiceDep,
) -> dict:
    try:
        application = await service.create_application(payload, current_user)
    except AppError as e:
        raise http_error(e, request) from e
    return create_api_response(
        data=ApplicationResponse.model_validate(application),
        message="Application created successfully",
        request=request,
    )


@router.get(
    "/",
    response_model=dict,
    summary="List the caller's applications",
    operation_id="list_applications",
)
async def list_applications(
    request: Request,
    current_user: UserDep,
    service: ServiceDep,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
) -> dict:
    try:
        applications = await service.list_applications(current_user, skip=offset, limit=limit)
    except AppError as e:
        raise http_error(e, request) from e
    return create_api_response(
        data={
            "items": [ApplicationResponse.model_validate(a).model_dump(mode="json") for a in applications],
            "total": len(applications),
        },
        message=f"Retrieved {len(applications)} applications",
        request=request,
    )


@router.get(
    "/{application_id}",
    response_model=dict,
    summary="Get an application",
    operation_id="get_application",
)
async def get_application(
    request: Request,
    application_id: UUID,
    current_user: UserDep,
    service: ServiceDep,
) -> dict:
    try:
        application = await service.get_application(application_id, current_user)
    except AppError as e:
        raise http_error(e, request) from e
    return create_api_response(
        data=ApplicationResponse.model_validate(application),
        message="Application retrieved successfully",
        request=request,
    )


@router.patch(
    "/{application_id}",
    response_model=dict,
    summary="Update an application",
    operation_id="update_application",
)
async def update_application(
    request: Request,
    application_id: UUID,
    payload: ApplicationUpdate,
    current_user: UserDep,
    service: ServiceDep,
) -> dict:
    try:
        application = await service.update_application(application_id, payload, current_user)
    except AppError as e:
        raise http_error(e, request) from e
    return create_api_response(
        data=ApplicationResponse.model_validate(application),
        message="Application updated successfully",
        request=request,
    )


@router.delete(
    "/{application_id}",
    response_model=dict,
    summary="Delete an application and everything attached to it",
    operation_id="delete_application",
)
async def delete_application(
    request: Request,
    application_id: UUID,
    current_user: UserDep,
    service: ServiceDep,
) -> dict:
    try:
        await service.delete_application(application_id, current_user)
    except AppError as e:
        raise http_error(e, request) from e
    return create_api_response(
        data={"id": str(application_id)},
        message="Application deleted successfully",
        request=request,
    )


@router.get(
    "/{application_id}/requirements",
    response_model=dict,
    summary="Resolve the document checklist for an application",
    operation_id="get_application_requirements",
)
async def get_requirements(
    request: Request,
    application_id: UUID,
    current_user: UserDep,
    service: ServiceDep,
) -> dict:
    try:
        requirements = await service.get_requirements(application_id, current_user)
    except AppError as e:
        raise http_error(e, request) from e
    return create_api_response(
        data=requirements,
        message=f"{requirements.total_required} documents required",
        request=request,
    )


@router.get(
    "/{application_id}/summary",
    response_model=dict,
    summary="Document checklist grouped by labelled category",
    operation_id="get_application_document_summary",
)
async def get_document_summary(
    request: Request,
    application_id: UUID,
    current_user: UserDep,
    service: ServiceDep,
) -> dict:
    try:
        summary = await service.get_document_summary(application_id, current_user)
    except AppError as e:
        raise http_error(e, request) from e
    return create_api_response(data=summary, message="Document summary retrieved", request=request)


@router.get(
    "/{application_id}/aggregated",
    response_model=dict,
    summary="Aggregated application data for review",
    operation_id="get_aggregated_application_data",
)
async def get_aggregated_data(
    request: Request,
    application_id: UUID,
    current_user: UserDep,
    service: ServiceDep,
) -> dict:
    try:
        data = await service.get_aggregated_data(application_id, current_user)
    except AppError as e:
        raise http_error(e, request) from e
    return create_api_response(data=data, message="Application data aggregated", request=request)


@router.post(
    "/{application_id}/reprocess",
    response_model=dict,
    summary="Re-merge extracted document data into the application record",
    operation_id="reprocess_application_form_data",
)
async def reprocess_form_data(
    request: Request,
    application_id: UUID,
    current_user: UserDep,
    service: ServiceDep,
) -> dict:
    try:
        result = await service.reprocess_form_data(application_id, current_user)
    except AppError as e:
        raise http_error(e, request) from e
    return create_api_response(
        data={
            "form_data": result.record.to_json_dict(),
            "warnings": [w.model_dump(mode="json") for w in result.warnings],
            "merged_document_count": result.merged_document_count,
        },
        message=f"Merged {result.merged_document_count} documents",
        request=request,
    )
