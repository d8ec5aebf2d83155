# app/properties/router.py

"""
FastAPI router for property listings and rental applications.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from app.properties.exceptions import (
    ApplicationNotFoundException,
    ApplicationStateException,
    PropertyNotFoundException,
)
from app.properties.schemas import (
    ApplicationCreate,
    ApplicationDecision,
    ApplicationResponse,
    PropertyCreate,
    PropertyResponse,
)
from app.properties.services import PropertyService
from app.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(
    prefix="/properties",
    tags=["Properties"],
    responses={404: {"description": "Not found"}},
)


@router.post("/", response_model=PropertyResponse, status_code=status.HTTP_201_CREATED)
def create_property(
    property_data: PropertyCreate,
    service: PropertyService = Depends(),
) -> PropertyResponse:
    """Create a property listing."""
    return service.create_property(property_data)


@router.get("/{property_id}", response_model=PropertyResponse)
def get_property(property_id: int, service: PropertyService = Depends()) -> PropertyResponse:
    """Get a property by ID."""
    try:
        return service.get_property(property_id)
    except PropertyNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e


# === Applications ===

@router.post(
    "/applications",
    response_model=ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
)
def submit_application(
    application_data: ApplicationCreate,
    service: PropertyService = Depends(),
) -> ApplicationResponse:
    """Submit a rental application for a property."""
    try:
        return service.submit_application(application_data)
    except PropertyNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e


@router.get("/applications/{application_id}", response_model=ApplicationResponse)
def get_application(application_id: int, service: PropertyService = Depends()) -> ApplicationResponse:
    """Get an application by ID."""
    try:
        return service.get_application(application_id)
    except ApplicationNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e


@router.put("/applications/{application_id}/status", response_model=ApplicationResponse)
def decide_application(
    application_id: int,
    decision: ApplicationDecision,
    service: PropertyService = Depends(),
) -> ApplicationResponse:
    """Approve or reject a pending application."""
    try:
        return service.decide_application(application_id, decision)
    except ApplicationNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e
    except ApplicationStateException as e:
        logger.warning("Application decision rejected", application_id=application_id, error=e.message)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message) from e


@router.put("/applications/{application_id}/withdraw", response_model=ApplicationResponse)
def withdraw_application(application_id: int, service: PropertyService = Depends()) -> ApplicationResponse:
    """Withdraw a pending application."""
    try:
        return service.withdraw_application(application_id)
    except ApplicationNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e
    except ApplicationStateException as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message) from e
