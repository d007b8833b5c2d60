"""Nomination scoring rules and the review endpoints."""
import pytest
from sqlalchemy import select

from kol360.constants import CampaignStatus, MatchType, NominationStatus, QuestionType, ResponseStatus
from kol360.database import async_session, utcnow
from kol360.models.hcp import Hcp, HcpAlias
from kol360.models.nomination import Nomination
from kol360.models.survey_response import SurveyResponse
from kol360.services.nomination_service import name_parts, score_candidate, match_status_for
from tests.factories import make_campaign, make_hcp, add_question, assign_hcp


class TestNameParts:
    def test_strips_punctuation_and_lowercases(self):
        assert name_parts("Dr. Jane  O'Smith-Jones") == ["dr", "jane", "osmithjones"]

    def test_empty(self):
        assert name_parts("  ") == []


class TestScoreCandidate:
    def test_exact_full_name(self):
        assert score_candidate("Jane Smith", "Jane", "Smith", []) == (100, MatchType.EXACT, True)

    def test_exact_reversed_name(self):
        assert score_candidate("smith jane", "Jane", "Smith", []) == (100, MatchType.EXACT, True)

    def test_exact_alias_is_not_a_name_match(self):
        assert score_candidate("Janie S", "Jane", "Smith", ["Janie S"]) == (100, MatchType.ALIAS, False)

    def test_full_name_contains_raw(self):
        assert score_candidate("ane smit", "Jane", "Smith", []) == (90, MatchType.PRIMARY, True)

    def test_last_name_and_initial(self):
        assert score_candidate("J. Smith", "Jane", "Smith", []) == (85, MatchType.PRIMARY, True)

    def test_partial_alias(self):
        assert score_candidate("Janie", "Jane", "Smith", ["Janie Smith-Lee"]) == (70, MatchType.ALIAS, False)

    def test_two_matching_parts_reach_threshold(self):
        assert score_candidate("Smith Retina Jane", "Jane", "Smith", []) == (50, MatchType.PARTIAL, True)

    def test_partial_parts_capped_at_60(self):
        assert score_candidate("Smith Jan Jane", "Jane", "Smith", []) == (60, MatchType.PARTIAL, True)

    def test_single_part_is_below_threshold(self):
        assert score_candidate("Smith Clinic", "Jane", "Smith", []) == (25, MatchType.PARTIAL, False)

    def test_no_overlap(self):
        assert score_candidate("Bob Brown", "Jane", "Smith", []) == (0, MatchType.PARTIAL, False)


class TestMatchStatus:
    @pytest.mark.parametrize("match_type", [MatchType.EXACT, MatchType.PRIMARY, MatchType.ALIAS])
    def test_full_confidence_named_match_is_matched(self, match_type):
        assert match_status_for(match_type, 100) == NominationStatus.MATCHED

    def test_partial_needs_review(self):
        assert match_status_for(MatchType.PARTIAL, 100) == NominationStatus.REVIEW_NEEDED

    def test_low_confidence_needs_review(self):
        assert match_status_for(MatchType.EXACT, 85) == NominationStatus.REVIEW_NEEDED

    def test_missing_type_needs_review(self):
        assert match_status_for(None, 100) == NominationStatus.REVIEW_NEEDED


@pytest.fixture
async def nomination_setup(db, tenant):
    """A closed campaign with one completed response carrying two nominations."""
    campaign = await make_campaign(db, tenant.id, status=CampaignStatus.CLOSED)
    question = await add_question(db, campaign.id, "Who are the national leaders in retina?",
                                  QuestionType.MULTI_TEXT, nomination_type="NATIONAL_KOL")
    nominator = await make_hcp(db, "1000000001", "John", "Doe")
    nominee = await make_hcp(db, "1000000002", "Jane", "Smith", specialty="Retina")
    campaign_hcp = await assign_hcp(db, campaign.id, nominator.id, email_sent_at=utcnow())

    response = SurveyResponse(
        campaign_id=campaign.id, respondent_hcp_id=nominator.id, survey_token=campaign_hcp.survey_token,
        status=ResponseStatus.COMPLETED, completed_at=utcnow(),
    )
    db.add(response)
    await db.flush()
    exact = Nomination(response_id=response.id, question_id=question.id,
                       nominator_hcp_id=nominator.id, raw_name_entered="Jane Smith")
    fuzzy = Nomination(response_id=response.id, question_id=question.id,
                       nominator_hcp_id=nominator.id, raw_name_entered="J. Smith")
    db.add_all([exact, fuzzy])
    await db.commit()
    return {"campaign": campaign, "nominee": nominee, "exact": exact, "fuzzy": fuzzy}


class TestNominationEndpoints:
    async def test_suggestions_are_ranked(self, client, client_admin_headers, nomination_setup):
        campaign, fuzzy = nomination_setup["campaign"], nomination_setup["fuzzy"]

        response = await client.get(
            f"/api/v1/campaigns/{campaign.id}/nominations/{fuzzy.id}/suggestions", headers=client_admin_headers,
        )

        assert response.status_code == 200
        suggestions = response.json()["suggestions"]
        assert suggestions[0]["hcp"]["id"] == nomination_setup["nominee"].id
        assert suggestions[0]["score"] == 85
        scores = [s["score"] for s in suggestions]
        assert scores == sorted(scores, reverse=True)

    async def test_bulk_match(self, client, client_admin_headers, nomination_setup):
        campaign = nomination_setup["campaign"]

        response = await client.post(f"/api/v1/campaigns/{campaign.id}/nominations/bulk-match",
                                     headers=client_admin_headers)

        assert response.status_code == 200
        assert response.json()["matched"] == 2
        assert response.json()["total"] == 2
        async with async_session() as session:
            exact = await session.get(Nomination, nomination_setup["exact"].id)
            fuzzy = await session.get(Nomination, nomination_setup["fuzzy"].id)
            aliases = (await session.execute(select(HcpAlias.alias_name))).scalars().all()
        assert exact.match_status == NominationStatus.MATCHED
        assert fuzzy.match_status == NominationStatus.REVIEW_NEEDED
        assert fuzzy.match_confidence == 85
        # Name matches never add aliases
        assert aliases == []

    async def test_manual_match_with_alias(self, client, client_admin_headers, nomination_setup):
        campaign, fuzzy, nominee = nomination_setup["campaign"], nomination_setup["fuzzy"], nomination_setup["nominee"]

        response = await client.post(
            f"/api/v1/campaigns/{campaign.id}/nominations/{fuzzy.id}/match",
            json={"hcp_id": nominee.id, "match_type": "alias", "match_confidence": 100, "add_alias": True},
            headers=client_admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["match_status"] == NominationStatus.MATCHED
        async with async_session() as session:
            aliases = (await session.execute(
                select(HcpAlias.alias_name).where(HcpAlias.hcp_id == nominee.id)
            )).scalars().all()
        assert aliases == ["J. Smith"]

    async def test_match_unknown_hcp_is_400(self, client, client_admin_headers, nomination_setup):
        campaign, fuzzy = nomination_setup["campaign"], nomination_setup["fuzzy"]

        response = await client.post(
            f"/api/v1/campaigns/{campaign.id}/nominations/{fuzzy.id}/match",
            json={"hcp_id": "missing"}, headers=client_admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "HCP not found"

    async def test_create_hcp_from_nomination(self, client, client_admin_headers, nomination_setup):
        campaign, fuzzy = nomination_setup["campaign"], nomination_setup["fuzzy"]

        response = await client.post(
            f"/api/v1/campaigns/{campaign.id}/nominations/{fuzzy.id}/create-hcp",
            json={"npi": "1000000099", "first_name": "Joan", "last_name": "Smith"},
            headers=client_admin_headers,
        )

        assert response.status_code == 201
        assert response.json()["match_status"] == NominationStatus.NEW_HCP
        async with async_session() as session:
            hcp = await session.scalar(select(Hcp).where(Hcp.npi == "1000000099"))
            aliases = (await session.execute(
                select(HcpAlias.alias_name).where(HcpAlias.hcp_id == hcp.id)
            )).scalars().all()
        assert aliases == ["J. Smith"]

    async def test_create_hcp_duplicate_npi_is_400(self, client, client_admin_headers, nomination_setup):
        campaign, fuzzy = nomination_setup["campaign"], nomination_setup["fuzzy"]

        response = await client.post(
            f"/api/v1/campaigns/{campaign.id}/nominations/{fuzzy.id}/create-hcp",
            json={"npi": "1000000002", "first_name": "Jane", "last_name": "Smith"},
            headers=client_admin_headers,
        )

        assert response.status_code == 400

    async def test_raw_name_edit_only_while_unresolved(self, client, client_admin_headers, nomination_setup):
        campaign, exact = nomination_setup["campaign"], nomination_setup["exact"]
        url = f"/api/v1/campaigns/{campaign.id}/nominations/{exact.id}"

        edited = await client.put(url, json={"raw_name_entered": "Jane A. Smith"}, headers=client_admin_headers)
        assert edited.status_code == 200
        assert edited.json()["raw_name_entered"] == "Jane A. Smith"

        await client.post(f"{url}/exclude", json={"reason": "Not a physician"}, headers=client_admin_headers)
        blocked = await client.put(url, json={"raw_name_entered": "Someone"}, headers=client_admin_headers)
        assert blocked.status_code == 400

    async def test_stats(self, client, client_admin_headers, nomination_setup):
        campaign = nomination_setup["campaign"]

        response = await client.get(f"/api/v1/campaigns/{campaign.id}/nominations/stats",
                                    headers=client_admin_headers)

        assert response.json() == {NominationStatus.UNMATCHED: 2}
