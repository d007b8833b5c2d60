from typing import Optional
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.auth import UserPrincipal, hash_password, ensure_tenant_access
from kol360.constants import UserRole, UserStatus, SYSTEM_USER_EMAIL
from kol360.exceptions import NotFoundError, BadRequestError, ConflictError, ForbiddenError
from kol360.logging_config import LogActions
from kol360.models.client import Client
from kol360.models.user import User
from kol360.schemas.common import paginate
from kol360.schemas.user import UserInvite, UserUpdate, UserResponse
from kol360.services.audit_service import create_audit_log

PENDING_STATUSES = (UserStatus.PENDING_VERIFICATION, UserStatus.PENDING_APPROVAL)


class UserService:
    async def list_all(
        self,
        db: AsyncSession,
        current_user: UserPrincipal,
        client_id: Optional[str] = None,
        role: Optional[str] = None,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> dict:
        query = select(User).where(User.email != SYSTEM_USER_EMAIL)
        tenant = current_user.tenant_filter()
        if tenant is not None:
            query = query.where(User.client_id == tenant)
        elif client_id:
            query = query.where(User.client_id == client_id)
        if role:
            query = query.where(User.role == role)
        if status:
            query = query.where(User.status == status)

        total = await db.scalar(select(func.count()).select_from(query.subquery())) or 0
        query = query.order_by(User.created_at.desc()).offset((page - 1) * limit).limit(limit)
        users = (await db.execute(query)).scalars().all()
        return {
            "items": [UserResponse.model_validate(u) for u in users],
            "pagination": paginate(page, limit, total),
        }

    async def get(self, db: AsyncSession, user_id: str, current_user: Optional[UserPrincipal] = None) -> User:
        user = await db.get(User, user_id)
        if not user:
            raise NotFoundError("User", user_id)
        if current_user is not None:
            ensure_tenant_access(current_user, user.client_id)
        return user

    async def _check_assignment(self, db: AsyncSession, current_user: UserPrincipal,
                                role: Optional[str], client_id: Optional[str]) -> None:
        if not current_user.is_platform_admin:
            if role == UserRole.PLATFORM_ADMIN:
                raise ForbiddenError("Only platform admins can grant the PLATFORM_ADMIN role")
            if client_id is not None and client_id != current_user.tenant_id:
                raise ForbiddenError("Cannot assign users to another client")
        if client_id and not await db.get(Client, client_id):
            raise BadRequestError("Client not found")

    async def invite(self, db: AsyncSession, data: UserInvite, current_user: UserPrincipal) -> User:
        client_id = data.client_id if current_user.is_platform_admin else current_user.tenant_id
        await self._check_assignment(db, current_user, data.role, client_id)
        if data.role != UserRole.PLATFORM_ADMIN and not client_id:
            raise BadRequestError("client_id is required for client users")

        email = data.email.lower()
        if await db.scalar(select(User.id).where(func.lower(User.email) == email)):
            raise ConflictError(f"User {email} already exists")

        user = User(
            email=email,
            first_name=data.first_name,
            last_name=data.last_name,
            role=data.role,
            client_id=client_id,
            status=UserStatus.PENDING_VERIFICATION,
            password_hash=hash_password(data.password) if data.password else None,
        )
        db.add(user)
        await db.flush()
        await create_audit_log(
            db, current_user.sub, LogActions.USER_INVITED, "User", user.id,
            new_values={"email": user.email, "role": user.role, "client_id": user.client_id},
            tenant_id=user.client_id,
        )
        return user

    async def update(self, db: AsyncSession, user_id: str, data: UserUpdate, current_user: UserPrincipal) -> User:
        user = await self.get(db, user_id, current_user)
        changes = data.model_dump(exclude_unset=True)
        await self._check_assignment(db, current_user, changes.get("role"), changes.get("client_id"))

        old_values = {k: getattr(user, k) for k in changes}
        for key, value in changes.items():
            setattr(user, key, value)
        await db.flush()
        await create_audit_log(
            db, current_user.sub, "user.updated", "User", user.id,
            old_values=old_values, new_values=changes, tenant_id=user.client_id,
        )
        return user

    async def _set_status(self, db: AsyncSession, user: User, status: str, action: str,
                          current_user: UserPrincipal) -> User:
        old_status = user.status
        user.status = status
        await db.flush()
        await create_audit_log(
            db, current_user.sub, action, "User", user.id,
            old_values={"status": old_status}, new_values={"status": status}, tenant_id=user.client_id,
        )
        return user

    async def approve(self, db: AsyncSession, user_id: str, current_user: UserPrincipal) -> User:
        user = await self.get(db, user_id, current_user)
        if user.status not in PENDING_STATUSES:
            raise BadRequestError(f"Cannot approve a user with status {user.status}")
        return await self._set_status(db, user, UserStatus.ACTIVE, LogActions.USER_APPROVED, current_user)

    async def disable(self, db: AsyncSession, user_id: str, current_user: UserPrincipal) -> User:
        if user_id == current_user.sub:
            raise BadRequestError("You cannot disable your own account")
        user = await self.get(db, user_id, current_user)
        if user.status == UserStatus.DISABLED:
            raise BadRequestError("User is already disabled")
        if user.role == UserRole.PLATFORM_ADMIN and not current_user.is_platform_admin:
            raise ForbiddenError()
        return await self._set_status(db, user, UserStatus.DISABLED, LogActions.USER_DISABLED, current_user)

    async def enable(self, db: AsyncSession, user_id: str, current_user: UserPrincipal) -> User:
        user = await self.get(db, user_id, current_user)
        if user.status != UserStatus.DISABLED:
            raise BadRequestError("Only disabled users can be enabled")
        return await self._set_status(db, user, UserStatus.ACTIVE, LogActions.USER_ENABLED, current_user)


user_service = UserService()
