"""
Service layer for business logic implementation.
Contains the property orchestration service and its collaborators.
"""

from .property import PropertyService, PropertyUpdateResult
from .cleanup import CleanupScheduler
from .events import PropertyChanged, PropertyEventBus
from .error_handler import ErrorHandlerService

__all__ = [
    "PropertyService",
    "PropertyUpdateResult",
    "CleanupScheduler",
    "PropertyChanged",
    "PropertyEventBus",
    "ErrorHandlerService"
]
