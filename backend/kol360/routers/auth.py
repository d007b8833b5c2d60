import logging
from fastapi import APIRouter, Depends
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.auth import UserPrincipal, get_current_user, create_token, hash_password, verify_password
from kol360.constants import UserRole, UserStatus
from kol360.database import get_db, utcnow
from kol360.exceptions import UnauthorizedError, ConflictError
from kol360.logging_config import LogActions, log_event
from kol360.models.user import User
from kol360.schemas.auth import LoginRequest, SignupRequest, TokenResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    user = await db.scalar(select(User).where(func.lower(User.email) == body.email.lower()))
    if not user or not verify_password(body.password, user.password_hash):
        log_event(logger, LogActions.AUTH_LOGIN_FAILED, logging.WARNING, email=body.email)
        raise UnauthorizedError("Invalid email or password")
    if user.status != UserStatus.ACTIVE:
        log_event(logger, LogActions.AUTH_LOGIN_FAILED, logging.WARNING, email=body.email, status=user.status)
        raise UnauthorizedError("Account is not active")

    user.last_login_at = utcnow()
    await db.flush()
    log_event(logger, LogActions.AUTH_LOGIN, user_id=user.id)
    return TokenResponse(
        access_token=create_token(user),
        user_id=user.id,
        email=user.email,
        role=user.role,
        tenant_id=user.client_id,
    )


@router.post("/signup", status_code=201)
async def signup(body: SignupRequest, db: AsyncSession = Depends(get_db)):
    """Self-service signup. The account waits for a platform admin to approve it."""
    if await db.scalar(select(User.id).where(func.lower(User.email) == body.email.lower())):
        raise ConflictError("User with this email already exists")
    user = User(
        email=body.email.lower(),
        first_name=body.first_name,
        last_name=body.last_name,
        role=UserRole.TEAM_MEMBER,
        status=UserStatus.PENDING_APPROVAL,
        password_hash=hash_password(body.password),
    )
    db.add(user)
    await db.flush()
    log_event(logger, LogActions.AUTH_SIGNUP, user_id=user.id)
    return {"id": user.id, "email": user.email, "status": user.status}


@router.get("/me")
async def me(current_user: UserPrincipal = Depends(get_current_user)):
    return {
        "sub": current_user.sub,
        "email": current_user.email,
        "role": current_user.role,
        "tenant_id": current_user.tenant_id,
    }
