"""Campaign dashboard aggregates."""
import pytest

from kol360.constants import CampaignStatus, ResponseStatus
from kol360.database import utcnow
from kol360.models.score import HcpCampaignScore
from kol360.services.dashboard_service import bucket_index, funnel, median, round2
from tests.factories import make_campaign, make_hcp, assign_hcp, make_response


class TestHelpers:
    @pytest.mark.parametrize("score,bucket", [(0, 0), (19.99, 0), (20, 1), (79.9, 3), (80, 4), (100, 4)])
    def test_bucket_index(self, score, bucket):
        assert bucket_index(score) == bucket

    def test_round2_rounds_half_up(self):
        assert round2(0.125) == 0.13
        assert round2(10) == 10

    def test_median(self):
        assert median([3, 1, 2]) == 2
        assert median([4, 1, 3, 2]) == 2.5

    def test_funnel_is_cumulative(self):
        counts = {ResponseStatus.OPENED: 1, ResponseStatus.IN_PROGRESS: 2, ResponseStatus.COMPLETED: 3}

        assert funnel(10, counts) == {"sent": 10, "opened": 6, "started": 5, "completed": 3}


@pytest.fixture
async def dashboard_campaign(db, tenant):
    campaign = await make_campaign(db, tenant.id, status=CampaignStatus.CLOSED)
    hcps = [
        await make_hcp(db, "5000000001", "Ana", "Alvarez", specialty="Retina", state="CA"),
        await make_hcp(db, "5000000002", "Ben", "Brown", specialty="Retina", state="NY"),
        await make_hcp(db, "5000000003", "Cy", "Chen", specialty="Glaucoma", state="CA"),
    ]
    links = [
        await assign_hcp(db, campaign.id, hcps[0].id, email_sent_at=utcnow()),
        await assign_hcp(db, campaign.id, hcps[1].id, email_sent_at=utcnow()),
        await assign_hcp(db, campaign.id, hcps[2].id),
    ]
    await make_response(db, campaign.id, links[0], ResponseStatus.COMPLETED)
    await make_response(db, campaign.id, links[1], ResponseStatus.IN_PROGRESS)
    for hcp, composite, survey in zip(hcps, (100, 45.5, 10), (100, 50, 0)):
        db.add(HcpCampaignScore(hcp_id=hcp.id, campaign_id=campaign.id, composite_score=composite,
                                score_survey=survey, nomination_count=int(survey / 25)))
    await db.commit()
    return campaign


class TestDashboardEndpoints:
    async def test_stats(self, client, client_admin_headers, dashboard_campaign):
        response = await client.get(f"/api/v1/campaigns/{dashboard_campaign.id}/dashboard/stats",
                                    headers=client_admin_headers)

        body = response.json()
        assert body["total_sent"] == 2
        assert body["total_completed"] == 1
        assert body["response_rate"] == 50
        assert body["average_score"] == 51.83
        assert body["median_score"] == 45.5
        assert body["min_score"] == 10
        assert body["max_score"] == 100
        assert body["total_hcps"] == 3
        assert body["hcps_by_specialty"] == [{"name": "Retina", "count": 2}, {"name": "Glaucoma", "count": 1}]

    async def test_funnel(self, client, client_admin_headers, dashboard_campaign):
        response = await client.get(f"/api/v1/campaigns/{dashboard_campaign.id}/dashboard/funnel",
                                    headers=client_admin_headers)

        assert response.json() == {"sent": 2, "opened": 2, "started": 2, "completed": 1}

    async def test_score_distribution(self, client, client_admin_headers, dashboard_campaign):
        response = await client.get(f"/api/v1/campaigns/{dashboard_campaign.id}/dashboard/score-distribution",
                                    headers=client_admin_headers)

        assert [r["count"] for r in response.json()["ranges"]] == [1, 0, 1, 0, 1]

    async def test_top_kols(self, client, client_admin_headers, dashboard_campaign):
        response = await client.get(f"/api/v1/campaigns/{dashboard_campaign.id}/dashboard/top-kols",
                                    params={"limit": 2}, headers=client_admin_headers)

        items = response.json()["items"]
        assert [i["last_name"] for i in items] == ["Alvarez", "Brown"]
        assert items[0]["nomination_count"] == 4

    async def test_segment_scores(self, client, client_admin_headers, dashboard_campaign):
        response = await client.get(f"/api/v1/campaigns/{dashboard_campaign.id}/dashboard/segment-scores",
                                    headers=client_admin_headers)

        segments = {s["name"]: s for s in response.json()["segments"]}
        assert len(segments) == 9
        assert segments["Survey"] == {"name": "Survey", "average_score": 50, "weight": 25}
        assert segments["Clinical Trials"]["average_score"] is None
        assert segments["Clinical Trials"]["weight"] == 15

    async def test_empty_campaign(self, client, db, tenant, client_admin_headers):
        campaign = await make_campaign(db, tenant.id)

        response = await client.get(f"/api/v1/campaigns/{campaign.id}/dashboard/stats", headers=client_admin_headers)

        body = response.json()
        assert body["response_rate"] == 0
        assert body["average_score"] is None
        assert body["hcps_by_state"] == []
