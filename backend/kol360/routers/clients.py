from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.auth import UserPrincipal, get_current_user, require_platform_admin, ensure_tenant_access
from kol360.constants import ClientType
from kol360.database import get_db
from kol360.exceptions import NotFoundError
from kol360.models.client import Client
from kol360.schemas.client import ClientCreate, ClientUpdate, ClientResponse
from kol360.services.audit_service import create_audit_log

router = APIRouter()


async def _get_client(db: AsyncSession, client_id: str) -> Client:
    client = await db.get(Client, client_id)
    if not client:
        raise NotFoundError("Client", client_id)
    return client


@router.get("")
async def list_clients(
    include_inactive: bool = Query(False),
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(get_current_user),
):
    query = select(Client)
    if not (include_inactive and current_user.is_platform_admin):
        query = query.where(Client.is_active.is_(True))
    tenant = current_user.tenant_filter()
    if tenant is not None:
        query = query.where(Client.id == tenant)
    clients = (await db.execute(query.order_by(Client.name))).scalars().all()
    return {"items": [ClientResponse.model_validate(c) for c in clients]}


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(get_current_user),
):
    client = await _get_client(db, client_id)
    ensure_tenant_access(current_user, client.id)
    return ClientResponse.model_validate(client)


@router.post("", response_model=ClientResponse, status_code=201)
async def create_client(
    data: ClientCreate,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_platform_admin),
):
    client = Client(**data.model_dump(), is_lite=data.type == ClientType.LITE)
    db.add(client)
    await db.flush()
    await create_audit_log(db, current_user.sub, "client.created", "Client", client.id,
                           new_values=data.model_dump(), tenant_id=client.id)
    return ClientResponse.model_validate(client)


@router.put("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: str,
    data: ClientUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_platform_admin),
):
    client = await _get_client(db, client_id)
    changes = data.model_dump(exclude_unset=True)
    old_values = {k: getattr(client, k) for k in changes}
    for key, value in changes.items():
        setattr(client, key, value)
    if "type" in changes:
        client.is_lite = client.type == ClientType.LITE
    await db.flush()
    await create_audit_log(db, current_user.sub, "client.updated", "Client", client.id,
                           old_values=old_values, new_values=changes, tenant_id=client.id)
    return ClientResponse.model_validate(client)


@router.delete("/{client_id}")
async def deactivate_client(
    client_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_platform_admin),
):
    client = await _get_client(db, client_id)
    client.is_active = False
    await db.flush()
    await create_audit_log(db, current_user.sub, "client.deactivated", "Client", client.id, tenant_id=client.id)
    return {"deactivated": True, "id": client.id}
