"""Client model"""

from sqlalchemy import Column, String, Text, ForeignKey, Uuid
from backoffice.models.base import BaseModel


class Client(BaseModel):
    """
    Client model representing a customer of the contractor.
    Projects, invoices and completion certificates are issued to clients.
    """

    __tablename__ = "clients"

    client_name = Column(String(255), nullable=False, index=True)
    client_address = Column(Text, nullable=False)
    pincode = Column(String(6), nullable=False, index=True)
    mobile_number = Column(String(50), nullable=False)
    email = Column(String(255), nullable=True)
    telephone_number = Column(String(50), nullable=True)
    trn_number = Column(String(50), nullable=False, index=True)
    account_number = Column(String(100), nullable=True, index=True)
    created_by_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)

    def __repr__(self):
        return f"<Client(id={self.id}, name={self.client_name})>"
