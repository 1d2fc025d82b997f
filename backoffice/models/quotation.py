"""Quotation and LPO models"""

from sqlalchemy import Column, String, Float, Date, Text, JSON, ForeignKey, Uuid
from backoffice.models.base import BaseModel


class Quotation(BaseModel):
    """
    Priced quotation sent to the client, one per project.
    Totals are derived from the line items.
    """

    __tablename__ = "quotations"

    project_id = Column(
        Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, unique=True, index=True
    )
    quotation_number = Column(String(50), unique=True, nullable=False)
    items = Column(JSON, nullable=False, default=list)
    scope_of_work = Column(JSON, nullable=False, default=list)
    subtotal = Column(Float, nullable=False, default=0)
    vat_percentage = Column(Float, nullable=False, default=5)
    vat_amount = Column(Float, nullable=False, default=0)
    net_amount = Column(Float, nullable=False, default=0)
    created_by_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)

    def __repr__(self):
        return f"<Quotation(id={self.id}, number={self.quotation_number})>"


class LPO(BaseModel):
    """Local Purchase Order issued by the client, one per project"""

    __tablename__ = "lpos"

    project_id = Column(
        Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, unique=True, index=True
    )
    lpo_number = Column(String(100), nullable=False)
    lpo_date = Column(Date, nullable=False)
    supplier = Column(String(255), nullable=True)
    document_url = Column(Text, nullable=True)
    document_key = Column(String(500), nullable=True)
    created_by_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)

    def __repr__(self):
        return f"<LPO(id={self.id}, number={self.lpo_number})>"
