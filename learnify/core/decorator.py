import inspect
import logging
from functools import wraps

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from learnify.core.exceptions import ConflictError, InternalError

logger = logging.getLogger(__name__)


def _translate(self, func_name: str, exc: SQLAlchemyError):
    self.db.rollback()
    if isinstance(exc, IntegrityError):
        logger.warning(f"Integrity error in {func_name}: {exc.orig}")
        return ConflictError("Duplicate entry: already exists")
    if isinstance(exc, StaleDataError):
        logger.warning(f"Concurrent modification in {func_name}")
        return ConflictError("The record was modified by another request, please retry")
    logger.error(f"Database error in {func_name}: {exc}")
    return InternalError("Database error occurred")


def db_exception(func):
    """Translate storage errors raised by a service method into typed errors.

    The session is rolled back before re-raising so the request-scoped session
    stays usable for the error response.
    """

    if inspect.iscoroutinefunction(func):

        @wraps(func)
        async def async_wrapper(self, *args, **kwargs):
            try:
                return await func(self, *args, **kwargs)
            except (SQLAlchemyError, StaleDataError) as e:
                raise _translate(self, func.__name__, e) from e

        return async_wrapper

    @wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except (SQLAlchemyError, StaleDataError) as e:
            raise _translate(self, func.__name__, e) from e

    return wrapper
