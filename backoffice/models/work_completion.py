"""Work completion model"""

from sqlalchemy import Column, String, JSON, ForeignKey, Uuid
from sqlalchemy.ext.mutable import MutableList
from sqlalchemy.orm import relationship
from backoffice.models.base import BaseModel


class WorkCompletion(BaseModel):
    """
    Work completion record for a project with its site pictures.
    Each image entry: id, title, description, image_url, s3_key, uploaded_at.
    """

    __tablename__ = "work_completions"

    project_id = Column(
        Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, unique=True, index=True
    )
    completion_number = Column(String(50), nullable=False)
    images = Column(MutableList.as_mutable(JSON), nullable=False, default=list)
    created_by_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)

    # Relationships
    created_by = relationship("User", lazy="selectin")

    def __repr__(self):
        return f"<WorkCompletion(id={self.id}, number={self.completion_number})>"
