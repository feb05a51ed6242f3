"""
Service layer for business logic.

The service layer holds the group assignment workflow, separated from HTTP
request handling (views) and data persistence (models/controllers).
"""

from .roster_transformation_service import RosterTransformationService
from .group_assignment_service import (
    ConfirmationRequired,
    GroupAssignmentService,
    ResourceNotFound,
    get_group_service,
)

__all__ = [
    'ConfirmationRequired',
    'GroupAssignmentService',
    'ResourceNotFound',
    'RosterTransformationService',
    'get_group_service',
]
