"""Expense model"""

from sqlalchemy import Column, Float, JSON, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from backoffice.models.base import BaseModel


class Expense(BaseModel):
    """
    Expense record for a project: purchased materials plus a frozen
    snapshot of the labor cost breakdown at creation/update time.
    """

    __tablename__ = "expenses"

    project_id = Column(
        Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True
    )
    materials = Column(JSON, nullable=False, default=list)
    labor_details = Column(JSON, nullable=False)  # LaborDetails snapshot
    total_material_cost = Column(Float, nullable=False, default=0)
    created_by_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)

    # Relationships
    project = relationship("Project", lazy="selectin")
    created_by = relationship("User", lazy="selectin")

    @property
    def total_labor_cost(self) -> float:
        return (self.labor_details or {}).get("total_labor_cost", 0)

    def __repr__(self):
        return f"<Expense(id={self.id}, project_id={self.project_id})>"
