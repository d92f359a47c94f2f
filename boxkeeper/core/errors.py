"""
Typed errors raised by the location and box services.

Every public service operation either returns its result or raises exactly one
of these. Business-rule errors carry a message that is safe to show to the end
user; ``OperationFailedError`` never carries storage details.
"""
from typing import Optional


class BoxKeeperError(Exception):
    """Base class for all domain errors."""

    default_message = "Operation could not be completed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def error_code(self) -> str:
        return type(self).__name__


class MembershipError(BoxKeeperError):
    default_message = "You are not a member of this workspace"


class InvalidInputError(BoxKeeperError):
    default_message = "Invalid input"


class NotFoundError(BoxKeeperError):
    default_message = "Resource not found"


class ParentNotFoundError(NotFoundError):
    default_message = "Parent location not found"


class LocationNotFoundError(NotFoundError):
    default_message = "Location not found"


class BoxNotFoundError(NotFoundError):
    default_message = "Box not found"


class QrCodeNotFoundError(NotFoundError):
    default_message = "QR code not found"


class ConflictError(BoxKeeperError):
    default_message = "Resource conflicts with an existing one"


class SiblingConflictError(ConflictError):
    default_message = "A location with this name already exists at this level"


class QrCodeAlreadyAssignedError(ConflictError):
    default_message = "QR code is already assigned to another box"


class MaxDepthExceededError(BoxKeeperError):
    default_message = "Maximum location depth exceeded. Locations can be nested at most 5 levels deep."


class WorkspaceMismatchError(BoxKeeperError):
    """A referenced QR code or location belongs to a different workspace."""

    def __init__(self, resource: str, message: Optional[str] = None):
        self.resource = resource
        if message is None:
            label = "QR code" if resource == "qr_code" else "Location"
            message = f"{label} belongs to a different workspace"
        super().__init__(message)


class OperationFailedError(BoxKeeperError):
    default_message = "Operation failed"
