"""
Print the survey link for every HCP assigned to a campaign.
Run with: python -m scripts.get_survey_links [campaign_id]
"""

import argparse
import asyncio
import sys
from typing import Optional
from sqlalchemy import select
from kol360.config import get_settings
from kol360.database import engine, async_session
from kol360.models.campaign import Campaign, CampaignHcp
from kol360.models.hcp import Hcp


async def survey_links(db, campaign_id: Optional[str] = None) -> list[str]:
    """Build the report lines; grouped by campaign name, newest assignment first."""
    stmt = (
        select(CampaignHcp, Hcp, Campaign)
        .join(Hcp, Hcp.id == CampaignHcp.hcp_id)
        .join(Campaign, Campaign.id == CampaignHcp.campaign_id)
        .order_by(Campaign.name, CampaignHcp.created_at.desc())
    )
    if campaign_id:
        stmt = stmt.where(CampaignHcp.campaign_id == campaign_id)
    rows = (await db.execute(stmt)).all()

    if not rows:
        lines = ["No campaign HCPs found."]
        if campaign_id:
            lines.append(f"Campaign ID provided: {campaign_id}")
        return lines

    base_url = get_settings().app_url.rstrip("/")
    lines = ["", "Survey Links", "=============", ""]
    current_campaign = None
    for campaign_hcp, hcp, campaign in rows:
        if campaign.name != current_campaign:
            current_campaign = campaign.name
            lines.append(f"📋 {campaign.name} ({campaign.status})")
            lines.append("-" * 50)
        sent = "✅" if campaign_hcp.email_sent_at else "⏳"
        lines.append(f"  {sent} {hcp.first_name} {hcp.last_name} ({hcp.email or 'no email'})")
        lines.append(f"     {base_url}/survey/{campaign_hcp.survey_token}")
    lines += ["", "Legend: ✅ = invitation sent, ⏳ = pending", ""]
    return lines


async def main(campaign_id: Optional[str]):
    async with async_session() as session:
        for line in await survey_links(session, campaign_id):
            print(line)
    await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="List survey links per campaign")
    parser.add_argument("campaign_id", nargs="?", default=None, help="Only show this campaign")
    args = parser.parse_args()
    try:
        asyncio.run(main(args.campaign_id))
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
