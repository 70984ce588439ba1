"""Ownership checks shared by every service that loads an application."""

from typing import Optional
from uuid import UUID

from visa_assistant.core.exceptions import ApplicationNotFoundError, UnauthenticatedError, UnauthorizedError
from visa_assistant.database.models import Application
from visa_assistant.repositories.application_repository import ApplicationRepository
from visa_assistant.schemas.auth import CurrentUser
from visa_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)


def require_user(user: Optional[CurrentUser]) -> CurrentUser:
    if user is None:
        raise UnauthenticatedError()
    return user


async def get_owned_application(
    repository: ApplicationRepository,
    application_id: UUID,
    user: Optional[CurrentUser],
) -> Application:
    """Load an application and verify the caller owns it.

    Raises:
        UnauthenticatedError: No identity
        ApplicationNotFoundError: Unknown application id
        UnauthorizedError: Application owned by another identity
    """
    user = require_user(user)
    application = await repository.get_by_id(application_id)
    if application is None:
        raise ApplicationNotFoundError()
    if application.user_id != user.id:
        LOGGER.warning(
            "Rejected access to application owned by another user",
            extra={"application_id": str(application_id), "user_id": user.id},
        )
        raise UnauthorizedError()
    return application
