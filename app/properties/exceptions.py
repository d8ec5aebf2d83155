# app/properties/exceptions.py

"""
Custom exceptions for the Properties module.
"""

from typing import Optional


class PropertyBaseException(Exception):
    """Base exception for property and application errors."""
    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class PropertyNotFoundException(PropertyBaseException):
    """Raised when a property is not found."""
    def __init__(self, property_id: int):
        self.property_id = property_id
        super().__init__(f"Property with ID {property_id} not found", {"property_id": property_id})


class ApplicationNotFoundException(PropertyBaseException):
    """Raised when an application is not found."""
    def __init__(self, application_id: int):
        self.application_id = application_id
        super().__init__(
            f"Application with ID {application_id} not found",
            {"application_id": application_id},
        )


class ApplicationStateException(PropertyBaseException):
    """Raised when an application cannot move to the requested status."""
    def __init__(self, application_id: int, current_status: str, operation: str):
        super().__init__(
            f"Cannot {operation} application {application_id} in status {current_status}",
            {"application_id": application_id, "status": current_status, "operation": operation},
        )
