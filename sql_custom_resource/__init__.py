"""
SQL custom resource for CloudFormation.

Runs one SQL statement inside a transaction when the resource is created,
using database credentials from AWS Secrets Manager.
"""

from .errors import (
    CommitError,
    CustomResourceError,
    DatabaseConnectionError,
    EmptySecret,
    MalformedSecret,
    MissingParameter,
    SecretStoreError,
    StatementError,
    TransactionError,
)
from .models import CredentialSet, CustomResourceResponse, LifecycleEvent
from .processor import EventProcessor, validate_parameters

__all__ = [
    "CommitError",
    "CredentialSet",
    "CustomResourceError",
    "CustomResourceResponse",
    "DatabaseConnectionError",
    "EmptySecret",
    "EventProcessor",
    "LifecycleEvent",
    "MalformedSecret",
    "MissingParameter",
    "SecretStoreError",
    "StatementError",
    "TransactionError",
    "validate_parameters",
]
