# app/properties/repository.py

"""
Data Access Layer for properties and applications.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.properties.models import Application, Property
from app.properties.schemas import ApplicationCreate, ApplicationStatus, PropertyCreate
from app.utils.logger import get_logger

logger = get_logger(__name__)


class PropertyRepository:
    """
    Handles database interactions for properties and their applications.
    """

    def __init__(self, db: Session):
        self.db = db

    def create_property(self, property_data: PropertyCreate) -> Property:
        """Create a new property listing."""
        prop = Property(**property_data.model_dump())
        self.db.add(prop)
        self.db.flush()
        self.db.refresh(prop)
        logger.info("Property created", property_id=prop.id, owner_id=prop.owner_id)
        return prop

    def get_property_by_id(self, property_id: int) -> Optional[Property]:
        """Fetch a property by ID."""
        return self.db.get(Property, property_id)

    def create_application(
        self,
        application_data: ApplicationCreate,
        status: ApplicationStatus = ApplicationStatus.PENDING,
        landlord_notes: Optional[str] = None,
    ) -> Application:
        """Create a new application."""
        application = Application(
            property_id=application_data.property_id,
            applicant_id=application_data.applicant_id,
            move_in_date=application_data.move_in_date,
            notes=application_data.notes,
            landlord_notes=landlord_notes,
            status=status.value,
        )
        self.db.add(application)
        self.db.flush()
        self.db.refresh(application)
        logger.info(
            "Application created",
            application_id=application.id,
            property_id=application.property_id,
            status=application.status,
        )
        return application

    def get_application_by_id(self, application_id: int) -> Optional[Application]:
        """Fetch an application by ID with its property."""
        stmt = select(Application).where(Application.id == application_id)
        return self.db.execute(stmt).unique().scalar_one_or_none()

    def update_application_status(
        self, application: Application, status: ApplicationStatus, landlord_notes: Optional[str] = None,
    ) -> Application:
        """Set the status (and optionally landlord notes) of an application."""
        application.status = status.value
        if landlord_notes is not None:
            application.landlord_notes = landlord_notes
        self.db.flush()
        self.db.refresh(application)
        return application
