# app/core/mixins.py

from sqlalchemy import Column, DateTime, func
from sqlalchemy.orm import declared_attr


class AuditMixin:
    """Mixin for auditing fields."""

    @declared_attr
    def created_on(cls):
        """
        Column for the timestamp when this record was created
        """
        return Column(
            DateTime(timezone=True),
            server_default=func.now(),
            comment="Timestamp when this record was created",
        )

    @declared_attr
    def updated_on(cls):
        """
        Column for the timestamp when this record was last updated
        """
        return Column(
            DateTime(timezone=True),
            onupdate=func.now(),
            comment="Timestamp when this record was last updated",
        )
