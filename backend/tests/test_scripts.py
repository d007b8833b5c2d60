"""Maintenance scripts under scripts/."""
import random

from sqlalchemy import select

from kol360.auth import verify_password
from kol360.constants import OPHTHALMOLOGY_SPECIALTIES, CampaignStatus
from kol360.database import utcnow, engine, Base
from kol360.models.hcp import Hcp
from kol360.models.specialty import Specialty
from kol360.models.user import User
from scripts.get_survey_links import survey_links
from scripts.init_db import create_tables
from scripts.seed import seed
from scripts.update_hcp_specialties import update_specialties
from tests.factories import make_campaign, make_hcp, assign_hcp


class TestSurveyLinks:
    async def test_no_assignments(self, db):
        assert await survey_links(db) == ["No campaign HCPs found."]
        assert await survey_links(db, "abc") == ["No campaign HCPs found.", "Campaign ID provided: abc"]

    async def test_lists_links_per_campaign(self, db, tenant):
        campaign = await make_campaign(db, tenant.id, status=CampaignStatus.ACTIVE)
        jane = await make_hcp(db, "7000000001", "Jane", "Smith", email="jane@example.com")
        raj = await make_hcp(db, "7000000002", "Raj", "Patel")
        sent = await assign_hcp(db, campaign.id, jane.id, email_sent_at=utcnow())
        pending = await assign_hcp(db, campaign.id, raj.id)

        lines = await survey_links(db, campaign.id)

        assert "📋 Retina KOL 2026 (ACTIVE)" in lines
        assert "  ✅ Jane Smith (jane@example.com)" in lines
        assert "  ⏳ Raj Patel (no email)" in lines
        assert f"     http://localhost:3000/survey/{sent.survey_token}" in lines
        assert f"     http://localhost:3000/survey/{pending.survey_token}" in lines

    async def test_filters_by_campaign(self, db, tenant):
        wanted = await make_campaign(db, tenant.id, name="Wanted")
        other = await make_campaign(db, tenant.id, name="Other")
        hcp = await make_hcp(db, "7000000003", "Ana", "Lopez")
        await assign_hcp(db, wanted.id, hcp.id)
        await assign_hcp(db, other.id, hcp.id)

        lines = await survey_links(db, wanted.id)

        assert any(line.startswith("📋 Wanted") for line in lines)
        assert not any(line.startswith("📋 Other") for line in lines)


async def test_update_specialties(db, capsys):
    await make_hcp(db, "7000000004", "Jane", "Smith", specialty="Cardiology")
    await make_hcp(db, "7000000005", "Raj", "Patel")

    updated = await update_specialties(db, random.Random(7))
    await db.commit()

    assert updated == 2
    hcps = (await db.execute(select(Hcp))).scalars().all()
    assert all(h.specialty in OPHTHALMOLOGY_SPECIALTIES for h in hcps)
    out = capsys.readouterr().out
    assert "Found 2 HCPs to update" in out
    assert "Updated Jane Smith: Cardiology -> " in out
    assert "Updated Raj Patel: null -> " in out
    assert "Done! Updated 2 HCPs with random specialties." in out


async def test_seed_is_idempotent(db, capsys):
    first = await seed(db, "Owner@Example.com", "correct horse battery")
    await db.commit()
    second = await seed(db, "owner@example.com", "ignored")
    await db.commit()

    # Disease areas are already seeded for every test
    assert first == {"disease_areas": 0, "specialties": len(OPHTHALMOLOGY_SPECIALTIES)}
    assert second == {"disease_areas": 0, "specialties": 0}
    admins = (await db.execute(select(User).where(User.email == "owner@example.com"))).scalars().all()
    assert len(admins) == 1
    assert verify_password("correct horse battery", admins[0].password_hash)
    assert len((await db.execute(select(Specialty))).scalars().all()) == len(OPHTHALMOLOGY_SPECIALTIES)
    assert "Platform admin: owner@example.com" in capsys.readouterr().out


async def test_create_tables_only_adds_missing():
    assert await create_tables() == []

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.tables["audit_logs"].drop)

    assert await create_tables() == ["audit_logs"]
