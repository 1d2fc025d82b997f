"""Client endpoints"""

from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.database import get_db
from backoffice.models import User
from backoffice.api.dependencies import (
    ADMINS,
    OFFICE_STAFF,
    PageParams,
    get_current_user,
    require_roles,
)
from backoffice.schemas.client import (
    ClientCreate,
    ClientListResponse,
    ClientResponse,
    ClientUpdate,
)
from backoffice.schemas.common import MessageResponse, Pagination
from backoffice.services.client_service import ClientService

router = APIRouter(prefix="/api/v1/clients", tags=["Clients"])


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(
    payload: ClientCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(*OFFICE_STAFF)),
):
    client = await ClientService(db).create_client(payload, current_user)
    return ClientResponse.model_validate(client)


@router.get("", response_model=ClientListResponse, status_code=status.HTTP_200_OK)
async def list_clients(
    paging: PageParams = Depends(),
    search: Optional[str] = Query(None, max_length=100),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    clients, total = await ClientService(db).list_clients(paging.page, paging.limit, search)
    return ClientListResponse(
        clients=[ClientResponse.model_validate(c) for c in clients],
        pagination=Pagination.build(total, paging.page, paging.limit),
    )


@router.get("/{client_id}", response_model=ClientResponse, status_code=status.HTTP_200_OK)
async def get_client(
    client_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return ClientResponse.model_validate(await ClientService(db).get_client(client_id))


@router.patch("/{client_id}", response_model=ClientResponse, status_code=status.HTTP_200_OK)
async def update_client(
    client_id: UUID,
    payload: ClientUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(*OFFICE_STAFF)),
):
    client = await ClientService(db).update_client(client_id, payload)
    return ClientResponse.model_validate(client)


@router.delete("/{client_id}", response_model=MessageResponse, status_code=status.HTTP_200_OK)
async def delete_client(
    client_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(*ADMINS)),
):
    """
    Delete a client without projects
    """
    await ClientService(db).delete_client(client_id)
    return MessageResponse(message="Client deleted successfully")
