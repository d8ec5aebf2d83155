# app/leases/exceptions.py

"""
Custom exceptions for the Leases module.
"""

from typing import Optional


class LeaseBaseException(Exception):
    """Base exception for all Lease-related errors."""
    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class LeaseValidationException(LeaseBaseException):
    """Raised when lease input has bad ordering, amounts or missing data."""
    pass


class LeaseNotFoundException(LeaseBaseException):
    """Raised when a lease is not found."""
    def __init__(self, lease_id: int):
        self.lease_id = lease_id
        super().__init__(f"Lease with ID {lease_id} not found", {"lease_id": lease_id})


class LeaseStateException(LeaseBaseException):
    """Raised when an operation is not valid for the current lease status."""
    def __init__(self, message: str, lease_id: Optional[int] = None, current_status: Optional[str] = None):
        self.lease_id = lease_id
        self.current_status = current_status
        super().__init__(message, {"lease_id": lease_id, "status": current_status})


class LeaseConflictException(LeaseBaseException):
    """Raised when a lease already exists for an application."""
    def __init__(self, application_id: int):
        self.application_id = application_id
        super().__init__(
            "Lease already exists for this application",
            {"application_id": application_id},
        )
