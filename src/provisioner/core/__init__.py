"""Core primitives: errors, logging, settings, the client protocol and specs."""

from provisioner.core.errors import (
    BundleTooLargeError,
    DDLFailedError,
    ErrorCategory,
    ErrorContext,
    InvalidSpecError,
    MissingResourceError,
    ProcedureCallError,
    ProcedureDefinitionFailedError,
    ProvisionerError,
    UploadFailedError,
)
from provisioner.core.protocols import ClientResponse, ProcedureClient, ResponseStatus
from provisioner.core.settings import ProvisionerSettings
from provisioner.core.spec import ProvisioningSpec, load_spec

__all__ = [
    "BundleTooLargeError",
    "ClientResponse",
    "DDLFailedError",
    "ErrorCategory",
    "ErrorContext",
    "InvalidSpecError",
    "MissingResourceError",
    "ProcedureCallError",
    "ProcedureClient",
    "ProcedureDefinitionFailedError",
    "ProvisionerError",
    "ProvisionerSettings",
    "ProvisioningSpec",
    "ResponseStatus",
    "UploadFailedError",
    "load_spec",
]
