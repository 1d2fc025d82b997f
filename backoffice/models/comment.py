"""Comment model"""

import enum
from sqlalchemy import Column, String, Text, Integer, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from backoffice.models.base import BaseModel


class CommentAction(str, enum.Enum):
    GENERAL = "general"
    STATUS_CHANGE = "status_change"
    PROGRESS_UPDATE = "progress_update"
    ASSIGNMENT = "assignment"


class Comment(BaseModel):
    """
    Audit trail entry attached to a project.
    Written for status changes, progress updates and assignments.
    """

    __tablename__ = "comments"

    project_id = Column(
        Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True
    )
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)
    content = Column(Text, nullable=False)
    action_type = Column(
        String(50), nullable=False, default=CommentAction.GENERAL.value, index=True
    )
    progress = Column(Integer, nullable=True)

    # Relationships
    user = relationship("User", lazy="selectin")

    def __repr__(self):
        return f"<Comment(id={self.id}, action_type={self.action_type})>"
