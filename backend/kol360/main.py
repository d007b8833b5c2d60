from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from kol360.auth import get_current_user
from kol360.config import get_settings
from kol360.database import engine, Base, async_session
from kol360.error_handlers import register_exception_handlers
from kol360.logging_config import setup_logging
from kol360.middleware.rate_limiter import RateLimitMiddleware
from kol360.middleware.request_context import RequestContextMiddleware, NoCacheMiddleware
from kol360.routers import (
    auth, users, clients, disease_areas, specialties, hcps, questions, sections, survey_templates,
    campaigns, distribution, survey, responses, nominations, scores, dashboards, exports, settings, health,
)
from kol360.services.seed_service import seed_reference_data
import kol360.models  # noqa: F401  registers every table on Base.metadata

config = get_settings()


async def seed_defaults():
    """Create the reference rows the app needs to run. Idempotent."""
    async with async_session() as session:
        await seed_reference_data(session)
        await session.commit()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    # Startup: create tables then seed reference data
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await seed_defaults()
    yield
    # Shutdown
    await engine.dispose()


app = FastAPI(
    title="KOL360",
    description="Multi-tenant HCP survey, nomination and KOL scoring platform",
    version=config.app_version,
    lifespan=lifespan,
)

app.add_middleware(NoCacheMiddleware)
app.add_middleware(RateLimitMiddleware, limit_per_minute=config.rate_limit_per_minute,
                   trusted_proxies=config.trusted_proxy_ips)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in config.cors_origin.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
# Added last so it runs first and every later layer sees the trace ID
app.add_middleware(RequestContextMiddleware)

register_exception_handlers(app)

authenticated = [Depends(get_current_user)]

# Public
app.include_router(health.router, prefix="/health", tags=["Health"])
app.include_router(auth.router, prefix="/api/v1/auth", tags=["Auth"])
app.include_router(survey.router, prefix="/api/v1", tags=["Survey"])

# Authenticated
app.include_router(users.router, prefix="/api/v1/users", tags=["Users"], dependencies=authenticated)
app.include_router(clients.router, prefix="/api/v1/clients", tags=["Clients"], dependencies=authenticated)
app.include_router(disease_areas.router, prefix="/api/v1/disease-areas", tags=["Disease Areas"],
                   dependencies=authenticated)
app.include_router(specialties.router, prefix="/api/v1/specialties", tags=["Specialties"],
                   dependencies=authenticated)
app.include_router(hcps.router, prefix="/api/v1/hcps", tags=["HCPs"], dependencies=authenticated)
app.include_router(questions.router, prefix="/api/v1/questions", tags=["Questions"], dependencies=authenticated)
app.include_router(sections.router, prefix="/api/v1/sections", tags=["Sections"], dependencies=authenticated)
app.include_router(survey_templates.router, prefix="/api/v1/survey-templates", tags=["Survey Templates"],
                   dependencies=authenticated)
app.include_router(campaigns.router, prefix="/api/v1/campaigns", tags=["Campaigns"], dependencies=authenticated)
app.include_router(distribution.router, prefix="/api/v1/campaigns", tags=["Distribution"],
                   dependencies=authenticated)
app.include_router(responses.router, prefix="/api/v1/campaigns", tags=["Responses"], dependencies=authenticated)
app.include_router(nominations.router, prefix="/api/v1/campaigns", tags=["Nominations"],
                   dependencies=authenticated)
app.include_router(scores.router, prefix="/api/v1/campaigns", tags=["Scores"], dependencies=authenticated)
app.include_router(dashboards.router, prefix="/api/v1/campaigns", tags=["Dashboards"], dependencies=authenticated)
app.include_router(exports.router, prefix="/api/v1/campaigns", tags=["Exports"], dependencies=authenticated)
app.include_router(settings.router, prefix="/api/v1/settings", tags=["Settings"], dependencies=authenticated)
