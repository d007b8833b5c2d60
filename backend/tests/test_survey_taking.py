"""Public survey flow and the admin view of responses."""
import pytest
from sqlalchemy import select

from kol360.constants import CampaignStatus, QuestionType, ResponseStatus, PaymentStatus, NominationStatus
from kol360.database import async_session
from kol360.models.nomination import Nomination
from kol360.models.opt_out import OptOut
from kol360.models.payment import Payment
from kol360.services.survey_taking_service import nomination_names, split_answer
from tests.factories import make_campaign, make_hcp, add_question, assign_hcp, make_response


def test_split_answer():
    assert split_answer("Yes") == ("Yes", None)
    assert split_answer(4) == ("4", None)
    assert split_answer(["Jane Smith"]) == (None, ["Jane Smith"])


def test_nomination_names_deduplicates_and_trims():
    assert nomination_names(["Jane Smith", " Jane Smith ", "", "Raj Patel"]) == ["Jane Smith", "Raj Patel"]
    assert nomination_names({"texts": ["Ana Lopez"]}) == ["Ana Lopez"]
    assert nomination_names("Jane Smith") == []


@pytest.fixture
async def survey(db, tenant):
    campaign = await make_campaign(db, tenant.id, status=CampaignStatus.ACTIVE, honorarium_amount=200)
    text_q = await add_question(db, campaign.id, "How many years have you practised?", sort_order=1)
    kol_q = await add_question(db, campaign.id, "Who are the national leaders in retina?",
                               QuestionType.MULTI_TEXT, sort_order=2, nomination_type="NATIONAL_KOL")
    hcp = await make_hcp(db, "4000000001", "John", "Doe", email="john.doe@example.com")
    campaign_hcp = await assign_hcp(db, campaign.id, hcp.id)
    return {
        "campaign": campaign,
        "text_q": text_q,
        "kol_q": kol_q,
        "hcp": hcp,
        "token": campaign_hcp.survey_token,
        "campaign_hcp": campaign_hcp,
    }


class TestTakeSurvey:
    async def test_get_survey(self, client, survey):
        response = await client.get(f"/api/v1/survey/take/{survey['token']}")

        assert response.status_code == 200
        body = response.json()
        assert body["campaign"]["honorarium_amount"] == 200
        assert body["hcp"] == {"first_name": "John", "last_name": "Doe"}
        assert [q["type"] for q in body["questions"]] == [QuestionType.TEXT, QuestionType.MULTI_TEXT]
        assert body["response"] is None

    async def test_unknown_token(self, client):
        response = await client.get("/api/v1/survey/take/not-a-token")

        assert response.status_code == 404
        assert response.json()["message"] == "Survey not found"

    async def test_draft_campaign_not_yet_active(self, client, db, tenant):
        campaign = await make_campaign(db, tenant.id)
        hcp = await make_hcp(db, "4000000002", "Amy", "Lee")
        campaign_hcp = await assign_hcp(db, campaign.id, hcp.id)

        response = await client.get(f"/api/v1/survey/take/{campaign_hcp.survey_token}")

        assert response.status_code == 400
        assert response.json()["message"] == "This survey is not yet active"

    async def test_closed_campaign_rejects(self, client, db, tenant):
        campaign = await make_campaign(db, tenant.id, status=CampaignStatus.CLOSED)
        hcp = await make_hcp(db, "4000000003", "Bo", "Kim")
        campaign_hcp = await assign_hcp(db, campaign.id, hcp.id)

        response = await client.post(f"/api/v1/survey/take/{campaign_hcp.survey_token}/start")

        assert response.json()["message"] == "This survey is no longer accepting responses"

    async def test_start_records_ip(self, client, survey):
        response = await client.post(f"/api/v1/survey/take/{survey['token']}/start",
                                     headers={"X-Forwarded-For": "203.0.113.9, 10.0.0.1"})

        assert response.json()["status"] == ResponseStatus.OPENED
        again = await client.post(f"/api/v1/survey/take/{survey['token']}/start")
        assert again.json()["response_id"] == response.json()["response_id"]

    async def test_save_before_start(self, client, survey):
        response = await client.post(f"/api/v1/survey/take/{survey['token']}/save", json={"answers": {}})

        assert response.json()["message"] == "Survey not started"

    async def test_save_resumes(self, client, survey):
        token = survey["token"]
        await client.post(f"/api/v1/survey/take/{token}/start")

        saved = await client.post(f"/api/v1/survey/take/{token}/save",
                                  json={"answers": {survey["text_q"].id: "12"}})
        resumed = await client.get(f"/api/v1/survey/take/{token}")

        assert saved.json() == {"saved": True}
        assert resumed.json()["response"] == {
            "status": ResponseStatus.IN_PROGRESS,
            "answers": {survey["text_q"].id: "12"},
        }

    async def test_save_unknown_question(self, client, survey):
        token = survey["token"]
        await client.post(f"/api/v1/survey/take/{token}/start")

        response = await client.post(f"/api/v1/survey/take/{token}/save", json={"answers": {"nope": "x"}})

        assert response.status_code == 400
        assert response.json()["message"] == "Unknown question: nope"

    async def test_submit_creates_nominations_and_payment(self, client, survey):
        token = survey["token"]
        await client.post(f"/api/v1/survey/take/{token}/start")

        response = await client.post(f"/api/v1/survey/take/{token}/submit", json={"answers": {
            survey["text_q"].id: "12",
            survey["kol_q"].id: ["Jane Smith", "Raj Patel", "Jane Smith"],
        }})

        assert response.json() == {"submitted": True}
        async with async_session() as session:
            nominations = (await session.execute(select(Nomination))).scalars().all()
            payment = await session.scalar(select(Payment))
        assert sorted(n.raw_name_entered for n in nominations) == ["Jane Smith", "Raj Patel"]
        assert all(n.match_status == NominationStatus.UNMATCHED for n in nominations)
        assert all(n.nominator_hcp_id == survey["hcp"].id for n in nominations)
        assert payment.amount == 200
        assert payment.status == PaymentStatus.PENDING_EXPORT

    async def test_completed_survey_is_closed(self, client, survey):
        token = survey["token"]
        await client.post(f"/api/v1/survey/take/{token}/start")
        await client.post(f"/api/v1/survey/take/{token}/submit", json={"answers": {}})

        fetched = await client.get(f"/api/v1/survey/take/{token}")
        restarted = await client.post(f"/api/v1/survey/take/{token}/start")
        resubmitted = await client.post(f"/api/v1/survey/take/{token}/submit", json={"answers": {}})

        assert fetched.json()["message"] == "You have already completed this survey"
        assert restarted.json()["message"] == "Survey already completed"
        assert resubmitted.json()["message"] == "Cannot save to completed survey"

    async def test_no_payment_without_honorarium(self, client, db, tenant):
        campaign = await make_campaign(db, tenant.id, status=CampaignStatus.ACTIVE)
        await add_question(db, campaign.id, "How many years have you practised?")
        hcp = await make_hcp(db, "4000000004", "Cy", "Ito")
        token = (await assign_hcp(db, campaign.id, hcp.id)).survey_token

        await client.post(f"/api/v1/survey/take/{token}/start")
        await client.post(f"/api/v1/survey/take/{token}/submit", json={"answers": {}})

        async with async_session() as session:
            assert await session.scalar(select(Payment)) is None


class TestUnsubscribe:
    async def test_info(self, client, survey):
        response = await client.get(f"/api/v1/unsubscribe/{survey['token']}")

        assert response.json() == {"valid": True, "campaign_name": "Retina KOL 2026"}

    async def test_campaign_opt_out_is_idempotent(self, client, survey):
        url = f"/api/v1/unsubscribe/{survey['token']}"

        first = await client.post(url, json={"scope": "CAMPAIGN", "reason": "Too many emails"})
        second = await client.post(url, json={"scope": "CAMPAIGN"})

        assert first.json() == {"opted_out": True, "scope": "CAMPAIGN"}
        assert second.json() == {"already_opted_out": True}
        async with async_session() as session:
            opt_out = await session.scalar(select(OptOut))
        assert opt_out.email == "john.doe@example.com"
        assert opt_out.campaign_id == survey["campaign"].id

    async def test_global_opt_out_has_no_campaign(self, client, survey):
        await client.post(f"/api/v1/unsubscribe/{survey['token']}", json={"scope": "GLOBAL"})

        async with async_session() as session:
            opt_out = await session.scalar(select(OptOut))
        assert opt_out.scope == "GLOBAL"
        assert opt_out.campaign_id is None

    async def test_hcp_without_email(self, client, db, survey):
        hcp = await make_hcp(db, "4000000005", "No", "Email")
        token = (await assign_hcp(db, survey["campaign"].id, hcp.id)).survey_token

        response = await client.post(f"/api/v1/unsubscribe/{token}", json={})

        assert response.json()["message"] == "Invalid token or no email associated"


class TestResponseAdmin:
    async def test_list_and_stats(self, client, db, client_admin_headers, survey):
        await make_response(db, survey["campaign"].id, survey["campaign_hcp"])
        base = f"/api/v1/campaigns/{survey['campaign'].id}/responses"

        listed = await client.get(base, headers=client_admin_headers)
        stats = await client.get(f"{base}/stats", headers=client_admin_headers)

        item = listed.json()["items"][0]
        assert item["respondent"]["npi"] == "4000000001"
        assert item["nomination_count"] == 0
        assert stats.json() == {ResponseStatus.COMPLETED: 1}

    async def test_edit_answer(self, client, db, client_admin_headers, survey):
        response = await make_response(db, survey["campaign"].id, survey["campaign_hcp"])
        url = f"/api/v1/campaigns/{survey['campaign'].id}/responses/{response.id}"

        edited = await client.put(url, json={"question_id": survey["text_q"].id, "value": "15"},
                                  headers=client_admin_headers)

        assert edited.json()["answers"][0]["value"] == "15"

    async def test_exclude_then_include(self, client, db, client_admin_headers, survey):
        response = await make_response(db, survey["campaign"].id, survey["campaign_hcp"])
        url = f"/api/v1/campaigns/{survey['campaign'].id}/responses/{response.id}"

        excluded = await client.post(f"{url}/exclude", json={"reason": "Duplicate respondent"},
                                     headers=client_admin_headers)
        twice = await client.post(f"{url}/exclude", json={"reason": "Again"}, headers=client_admin_headers)
        included = await client.post(f"{url}/include", headers=client_admin_headers)

        assert excluded.json() == {"id": response.id, "status": ResponseStatus.EXCLUDED}
        assert twice.json()["message"] == "Response is already excluded"
        assert included.json() == {"id": response.id, "status": ResponseStatus.COMPLETED}

    async def test_response_from_other_campaign_not_found(self, client, db, tenant, client_admin_headers, survey):
        response = await make_response(db, survey["campaign"].id, survey["campaign_hcp"])
        other = await make_campaign(db, tenant.id, name="Other")

        fetched = await client.get(f"/api/v1/campaigns/{other.id}/responses/{response.id}",
                                   headers=client_admin_headers)

        assert fetched.status_code == 404
