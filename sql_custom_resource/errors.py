"""
Error taxonomy for the SQL custom resource.

Every failure that can end an invocation is one of these. The event
processor turns them into the response ``error`` field; anything else is a
bug and propagates to the Lambda entry point.
"""


class CustomResourceError(Exception):
    """Base class for all terminal invocation errors"""
    pass


class MissingParameter(CustomResourceError):
    """A required resource property (or the configured secret id) is missing"""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Missing required '{field}' parameter")


class SecretStoreError(CustomResourceError):
    """Secrets Manager could not be reached or refused the request"""
    pass


class EmptySecret(CustomResourceError):
    """The secret exists but carries no string payload"""

    def __init__(self, message: str = "Unable to parse secret"):
        super().__init__(message)


class MalformedSecret(CustomResourceError):
    """The secret payload is not a valid credential record"""
    pass


class DatabaseConnectionError(CustomResourceError):
    """The connection factory could not produce a database handle"""
    pass


class TransactionError(CustomResourceError):
    """A transaction could not be started on the handle"""
    pass


class StatementError(CustomResourceError):
    """The SQL statement failed; the transaction was rolled back"""
    pass


class CommitError(CustomResourceError):
    """The statement ran but the transaction could not be committed"""
    pass
