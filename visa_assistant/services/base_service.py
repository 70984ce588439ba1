from abc import ABC, abstractmethod
from typing import Any

from visa_assistant.core.exceptions import AppError
from visa_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)


class BaseService(ABC):
    """Base class for services with a validate-then-run flow.

    ``AppError`` subclasses pass through untouched so the API layer can map
    them to status codes; anything else is logged and wrapped.
    """

    def __init__(self):
        self.logger = LOGGER

    async def execute(self, *args, **kwargs) -> Any:
        """Validate the input, run the service and normalize failures.

        Raises:
            AppError: If validation or execution fails
        """
        try:
            self.validate(*args, **kwargs)
            return await self.run(*args, **kwargs)

        except AppError:
            raise

        except Exception as e:
            self.logger.error(
                f"Service execution failed: {str(e)}",
                exc_info=True,
                extra={"service": self.__class__.__name__},
            )
            raise AppError(f"Service execution failed: {str(e)}", original_error=e)

    def validate(self, *args, **kwargs):
        """Override to reject bad input with ``ValidationError``."""
        pass

    @abstractmethod
    async def run(self, *args, **kwargs) -> Any:
        pass
