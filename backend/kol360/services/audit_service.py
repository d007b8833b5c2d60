import logging
from typing import Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.constants import SYSTEM_USER_EMAIL
from kol360.models.audit_log import AuditLog
from kol360.models.user import User

logger = logging.getLogger(__name__)


async def create_audit_log(
    db: AsyncSession,
    user_id: Optional[str],
    action: str,
    entity_type: str,
    entity_id: Optional[str] = None,
    old_values: Optional[dict] = None,
    new_values: Optional[dict] = None,
    tenant_id: Optional[str] = None,
    details: Optional[dict] = None,
) -> Optional[AuditLog]:
    """Record an audit entry. Unknown actors are attributed to the system user."""
    actor_id = None
    if user_id:
        actor_id = await db.scalar(select(User.id).where(User.id == user_id))

    if not actor_id:
        actor_id = await db.scalar(select(User.id).where(User.email == SYSTEM_USER_EMAIL))
        if not actor_id:
            logger.error(
                f"Audit log skipped, no system user: {action} on {entity_type} {entity_id}",
                extra={"extra_fields": {"action": action, "entity_type": entity_type}},
            )
            return None
        new_values = {**(new_values or {}), "_performed_by": user_id or "anonymous"}

    entry = AuditLog(
        user_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        old_values=old_values,
        new_values=new_values,
        tenant_id=tenant_id,
        details=details,
    )
    db.add(entry)
    await db.flush()
    return entry
