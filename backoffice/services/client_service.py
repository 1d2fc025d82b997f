"""Client service"""

import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.exceptions import NotFound, PreconditionFailed, ValidationError
from backoffice.models import Client, Project, User
from backoffice.schemas.client import ClientCreate, ClientUpdate

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("client_name", "client_address", "pincode", "mobile_number", "trn_number")


class ClientService:
    """CRUD for clients"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_client(self, client_id: UUID) -> Client:
        client = await self.db.get(Client, client_id)
        if not client:
            raise NotFound(f"Client with id {client_id} not found")
        return client

    async def create_client(self, data: ClientCreate, user: User) -> Client:
        client = Client(**data.model_dump(), created_by_id=user.id)
        self.db.add(client)
        await self.db.commit()
        await self.db.refresh(client)
        logger.info(f"Created client {client.id} ({client.client_name})")
        return client

    async def list_clients(
        self, page: int = 1, limit: int = 10, search: Optional[str] = None
    ) -> Tuple[List[Client], int]:
        filters = []
        if search:
            pattern = f"%{search}%"
            filters.append(or_(
                Client.client_name.ilike(pattern),
                Client.email.ilike(pattern),
                Client.mobile_number.ilike(pattern),
                Client.trn_number.ilike(pattern),
            ))

        count_result = await self.db.execute(select(func.count(Client.id)).where(*filters))
        total = count_result.scalar_one()

        result = await self.db.execute(
            select(Client)
            .where(*filters)
            .order_by(Client.created_at.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )
        return list(result.scalars().all()), total

    async def update_client(self, client_id: UUID, data: ClientUpdate) -> Client:
        client = await self.get_client(client_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None and field in REQUIRED_FIELDS:
                raise ValidationError(f"{field} cannot be empty")
            setattr(client, field, value)
        await self.db.commit()
        await self.db.refresh(client)
        return client

    async def delete_client(self, client_id: UUID) -> None:
        """
        Delete a client that has no projects.

        Raises:
            PreconditionFailed: If projects still reference the client
        """
        client = await self.get_client(client_id)

        result = await self.db.execute(
            select(func.count(Project.id)).where(Project.client_id == client_id)
        )
        if result.scalar_one():
            raise PreconditionFailed("Cannot delete client with existing projects")

        await self.db.delete(client)
        await self.db.commit()
        logger.info(f"Deleted client {client_id}")
