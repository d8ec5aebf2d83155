# app/properties/services.py

"""
Business logic for property listings and rental applications.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.properties.exceptions import (
    ApplicationNotFoundException,
    ApplicationStateException,
    PropertyNotFoundException,
)
from app.properties.models import Application, Property
from app.properties.repository import PropertyRepository
from app.properties.schemas import (
    ApplicationCreate,
    ApplicationDecision,
    ApplicationStatus,
    PropertyCreate,
)
from app.utils.logger import get_logger

logger = get_logger(__name__)


def get_property_repository(db: Session = Depends(get_db)) -> PropertyRepository:
    """Dependency to get PropertyRepository instance."""
    return PropertyRepository(db)


class PropertyService:
    """
    Property and application operations that feed lease creation.
    """

    def __init__(self, repo: PropertyRepository = Depends(get_property_repository)):
        self.repo = repo

    def create_property(self, property_data: PropertyCreate) -> Property:
        """Create a property listing."""
        return self.repo.create_property(property_data)

    def get_property(self, property_id: int) -> Property:
        """Get a property by ID."""
        prop = self.repo.get_property_by_id(property_id)
        if not prop:
            logger.warning("Property not found", property_id=property_id)
            raise PropertyNotFoundException(property_id)
        return prop

    def submit_application(self, application_data: ApplicationCreate) -> Application:
        """Submit a pending application for an existing property."""
        self.get_property(application_data.property_id)
        return self.repo.create_application(application_data)

    def get_application(self, application_id: int) -> Application:
        """Get an application by ID."""
        application = self.repo.get_application_by_id(application_id)
        if not application:
            logger.warning("Application not found", application_id=application_id)
            raise ApplicationNotFoundException(application_id)
        return application

    def decide_application(self, application_id: int, decision: ApplicationDecision) -> Application:
        """Approve or reject a pending application."""
        application = self.get_application(application_id)
        if application.status != ApplicationStatus.PENDING.value:
            raise ApplicationStateException(application_id, application.status, "decide")

        application = self.repo.update_application_status(
            application, decision.status, decision.landlord_notes
        )
        logger.info("Application decided", application_id=application_id, status=application.status)
        return application

    def withdraw_application(self, application_id: int) -> Application:
        """Withdraw a pending application."""
        application = self.get_application(application_id)
        if application.status != ApplicationStatus.PENDING.value:
            raise ApplicationStateException(application_id, application.status, "withdraw")

        application = self.repo.update_application_status(application, ApplicationStatus.WITHDRAWN)
        logger.info("Application withdrawn", application_id=application_id)
        return application
