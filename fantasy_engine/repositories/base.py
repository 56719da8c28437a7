"""
Shared plumbing for the MongoDB repositories.
"""

from functools import wraps

from pymongo.errors import ConnectionFailure, ExecutionTimeout, WTimeoutError

from fantasy_engine.core.errors import PersistenceUnavailableError


def translate_errors(func):
    """
    Surface driver timeouts and connection failures as
    PersistenceUnavailableError so callers can retry them.
    """

    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except (ConnectionFailure, ExecutionTimeout, WTimeoutError) as exc:
            raise PersistenceUnavailableError(str(exc)) from exc

    return wrapper
