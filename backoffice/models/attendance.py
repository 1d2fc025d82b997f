"""Attendance model"""

import enum
from sqlalchemy import Column, String, Boolean, Date, ForeignKey, Index, Uuid, text
from sqlalchemy.orm import relationship
from backoffice.models.base import BaseModel


class AttendanceType(str, enum.Enum):
    """Whether attendance was marked against a project or as general presence"""
    PROJECT = "project"
    NORMAL = "normal"


class Attendance(BaseModel):
    """
    Per-user, per-day presence flag, optionally scoped to a project.
    Project attendance is unique per (project, user, date).
    """

    __tablename__ = "attendance"
    __table_args__ = (
        Index(
            "uq_attendance_project_user_date",
            "project_id",
            "user_id",
            "date",
            unique=True,
            postgresql_where=text("type = 'project'"),
            sqlite_where=text("type = 'project'"),
        ),
    )

    project_id = Column(
        Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=True, index=True
    )
    user_id = Column(
        Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True
    )
    date = Column(Date, nullable=False, index=True)
    present = Column(Boolean, nullable=False)
    marked_by_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    type = Column(String(20), nullable=False, default=AttendanceType.PROJECT.value)

    # Relationships
    user = relationship("User", foreign_keys=[user_id], lazy="selectin")

    def __repr__(self):
        return (
            f"<Attendance(user_id={self.user_id}, project_id={self.project_id}, "
            f"date={self.date}, present={self.present})>"
        )
