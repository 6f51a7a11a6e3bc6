"""
Transactional execution of a single SQL statement.
"""

from typing import Callable, Optional

from sqlalchemy.exc import DBAPIError

from .connection import ConnectionDescriptor, ConnectionFactory
from .errors import CommitError, DatabaseConnectionError, StatementError, TransactionError
from .logger import get_logger

logger = get_logger(__name__)

# Returns the seconds left before the caller gives up on this invocation
Deadline = Callable[[], float]


def driver_error_text(error: Exception) -> str:
    """Text of the driver exception behind a SQLAlchemy wrapper, if any"""
    if isinstance(error, DBAPIError) and error.orig is not None:
        return str(error.orig)
    return str(error)


def _rollback(transaction, log_ctx) -> None:
    try:
        transaction.rollback()
    except Exception as e:
        logger.error("TX_ROLLBACK_FAILED", extra={**log_ctx, "error": driver_error_text(e)})


def execute_statement(
        factory: ConnectionFactory,
        descriptor: ConnectionDescriptor,
        sql_query: str,
        deadline: Optional[Deadline] = None
) -> None:
    """
    Run ``sql_query`` in its own transaction.

    The handle from ``factory`` is closed on every path. A failed statement
    is rolled back; a rollback failure is only logged so the statement's
    error is the one reported.

    A statement that returns after ``deadline`` has run out is rolled back
    too: committing then would leave no time to report the outcome.

    Raises
    ------
    DatabaseConnectionError, TransactionError, StatementError, CommitError
    """
    log_ctx = {"host": descriptor.host, "database": descriptor.database}

    try:
        handle = factory.open(descriptor)
    except Exception as e:
        logger.error("DB_CONNECTION_FAILED", extra={**log_ctx, "error": driver_error_text(e)})
        raise DatabaseConnectionError(driver_error_text(e)) from e

    with handle:
        logger.info("TX_BEGIN", extra=log_ctx)
        try:
            transaction = handle.begin()
        except Exception as e:
            logger.error("TX_BEGIN_FAILED", extra={**log_ctx, "error": driver_error_text(e)})
            raise TransactionError(driver_error_text(e)) from e

        try:
            handle.exec_driver_sql(sql_query)
        except Exception as e:
            logger.warning("TX_ROLLBACK", extra={**log_ctx, "error": driver_error_text(e)})
            _rollback(transaction, log_ctx)
            raise StatementError(driver_error_text(e)) from e

        if deadline is not None and deadline() <= 0:
            logger.error("DEADLINE_EXCEEDED", extra={**log_ctx, "step": "statement execution"})
            _rollback(transaction, log_ctx)
            raise StatementError("Invocation deadline exceeded during statement execution")

        try:
            transaction.commit()
        except Exception as e:
            logger.error("TX_COMMIT_FAILED", extra={**log_ctx, "error": driver_error_text(e)})
            raise CommitError(driver_error_text(e)) from e

        logger.info("TX_END", extra=log_ctx)
