#Expose the high-level pipeline pieces:
#Dispatch engine (the "one call" entry point per lifecycle event)
#Error taxonomy (what callers catch and convert at the API boundary)
#Lifecycle policy

from .dispatcher import DispatchEngine
from .errors import (
    DispatchError,
    ValidationError,
    NotFoundError,
    ConflictError,
    InvalidTransitionError,
    DriverAlreadyAssignedError,
    DriverNotAvailableError,
    ConcurrentModificationError,
    ServiceUnavailableError,
)
from .policy import DispatchPolicy, default_dispatch_policy

__all__ = [
    "DispatchEngine",
    "DispatchError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "InvalidTransitionError",
    "DriverAlreadyAssignedError",
    "DriverNotAvailableError",
    "ConcurrentModificationError",
    "ServiceUnavailableError",
    "DispatchPolicy",
    "default_dispatch_policy",
]
