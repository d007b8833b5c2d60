"""Matching free-text nominations to HCP records."""

import logging
import re
from typing import Optional
from sqlalchemy import select, func, or_, exists
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.constants import NominationStatus, MatchType
from kol360.database import utcnow, contains_pattern, LIKE_ESCAPE
from kol360.exceptions import NotFoundError, BadRequestError
from kol360.logging_config import LogActions, log_event
from kol360.models.hcp import Hcp, HcpAlias
from kol360.models.nomination import Nomination
from kol360.models.question import SurveyQuestion
from kol360.models.survey_response import SurveyResponse
from kol360.schemas.common import paginate
from kol360.schemas.nomination import MatchRequest, CreateHcpFromNomination

logger = logging.getLogger(__name__)

AUTO_MATCH_THRESHOLD = 50
MAX_CANDIDATES = 15
MAX_SUGGESTIONS = 10


def name_parts(raw_name: str) -> list[str]:
    return re.sub(r"[^a-z\s]", "", raw_name.lower()).split()


def score_candidate(raw_name: str, first_name: str, last_name: str, aliases: list[str]) -> tuple[int, str, bool]:
    """Score one HCP against a nominated name. Returns (score, match_type, is_name_match)."""
    parts = name_parts(raw_name)
    raw = raw_name.lower().strip()
    first, last = first_name.lower(), last_name.lower()
    full_name = f"{first} {last}"
    reverse_name = f"{last} {first}"
    alias_names = [a.lower() for a in aliases]

    if raw in (full_name, reverse_name):
        return 100, MatchType.EXACT, True
    if raw in alias_names:
        return 100, MatchType.ALIAS, False
    if raw in full_name or full_name in raw:
        return 90, MatchType.PRIMARY, True
    if raw.split(" ")[-1] == last and any(p in first for p in parts):
        return 85, MatchType.PRIMARY, True
    if any(raw in a or a in raw for a in alias_names):
        return 70, MatchType.ALIAS, False

    match_count = sum(1 for p in parts if p in first or p in last)
    score = min(60, match_count * 25)
    return score, MatchType.PARTIAL, score >= AUTO_MATCH_THRESHOLD


def match_status_for(match_type: Optional[str], confidence: int) -> str:
    if confidence == 100 and match_type in (MatchType.EXACT, MatchType.PRIMARY, MatchType.ALIAS):
        return NominationStatus.MATCHED
    return NominationStatus.REVIEW_NEEDED


class NominationService:
    def _campaign_query(self, campaign_id: str):
        return (
            select(Nomination)
            .join(SurveyResponse, SurveyResponse.id == Nomination.response_id)
            .where(SurveyResponse.campaign_id == campaign_id)
        )

    async def serialize(self, db: AsyncSession, nomination: Nomination) -> dict:
        matched = await db.get(Hcp, nomination.matched_hcp_id) if nomination.matched_hcp_id else None
        nominator = await db.get(Hcp, nomination.nominator_hcp_id)
        question = await db.get(SurveyQuestion, nomination.question_id)
        return {
            "id": nomination.id,
            "response_id": nomination.response_id,
            "question_id": nomination.question_id,
            "question_text": question.question_text_snapshot if question else None,
            "nomination_type": question.nomination_type if question else None,
            "raw_name_entered": nomination.raw_name_entered,
            "match_status": nomination.match_status,
            "match_type": nomination.match_type,
            "match_confidence": nomination.match_confidence,
            "matched_at": nomination.matched_at,
            "exclude_reason": nomination.exclude_reason,
            "matched_hcp": {
                "id": matched.id, "npi": matched.npi,
                "first_name": matched.first_name, "last_name": matched.last_name,
            } if matched else None,
            "nominator": {
                "first_name": nominator.first_name, "last_name": nominator.last_name,
            } if nominator else None,
        }

    async def list_for_campaign(self, db: AsyncSession, campaign_id: str, status: str = "",
                                page: int = 1, limit: int = 50) -> dict:
        query = self._campaign_query(campaign_id)
        if status:
            query = query.where(Nomination.match_status == status)
        total = await db.scalar(select(func.count()).select_from(query.subquery())) or 0
        query = query.order_by(Nomination.match_status, Nomination.raw_name_entered)
        nominations = (await db.execute(query.offset((page - 1) * limit).limit(limit))).scalars().all()
        return {
            "items": [await self.serialize(db, n) for n in nominations],
            "pagination": paginate(page, limit, total),
        }

    async def get(self, db: AsyncSession, nomination_id: str, campaign_id: Optional[str] = None) -> Nomination:
        nomination = await db.get(Nomination, nomination_id)
        if nomination and campaign_id:
            response_campaign = await db.scalar(
                select(SurveyResponse.campaign_id).where(SurveyResponse.id == nomination.response_id)
            )
            if response_campaign != campaign_id:
                nomination = None
        if not nomination:
            raise NotFoundError("Nomination", nomination_id)
        return nomination

    async def get_stats(self, db: AsyncSession, campaign_id: str) -> dict:
        rows = await db.execute(
            select(Nomination.match_status, func.count(Nomination.id))
            .join(SurveyResponse, SurveyResponse.id == Nomination.response_id)
            .where(SurveyResponse.campaign_id == campaign_id)
            .group_by(Nomination.match_status)
        )
        return {status: count for status, count in rows.all()}

    async def get_suggestions(self, db: AsyncSession, nomination: Nomination) -> list[dict]:
        parts = name_parts(nomination.raw_name_entered)
        if not parts:
            return []

        conditions = []
        for part in parts:
            like = contains_pattern(part)
            conditions += [
                Hcp.first_name.ilike(like, escape=LIKE_ESCAPE),
                Hcp.last_name.ilike(like, escape=LIKE_ESCAPE),
            ]
        alias_like = contains_pattern(nomination.raw_name_entered.strip())
        conditions.append(exists().where(
            HcpAlias.hcp_id == Hcp.id,
            HcpAlias.alias_name.ilike(alias_like, escape=LIKE_ESCAPE),
        ))
        candidates = (await db.execute(
            select(Hcp).where(or_(*conditions)).order_by(Hcp.last_name, Hcp.first_name).limit(MAX_CANDIDATES)
        )).scalars().all()

        scored = []
        for hcp in candidates:
            aliases = (await db.execute(
                select(HcpAlias).where(HcpAlias.hcp_id == hcp.id).order_by(HcpAlias.alias_name)
            )).scalars().all()
            score, match_type, is_name_match = score_candidate(
                nomination.raw_name_entered, hcp.first_name, hcp.last_name, [a.alias_name for a in aliases],
            )
            scored.append({
                "hcp": {
                    "id": hcp.id,
                    "npi": hcp.npi,
                    "first_name": hcp.first_name,
                    "last_name": hcp.last_name,
                    "specialty": hcp.specialty,
                    "city": hcp.city,
                    "state": hcp.state,
                    "aliases": [{"id": a.id, "alias_name": a.alias_name} for a in aliases],
                },
                "score": score,
                "match_type": match_type,
                "is_name_match": is_name_match,
            })
        scored.sort(key=lambda s: s["score"], reverse=True)
        return scored[:MAX_SUGGESTIONS]

    async def _add_alias_if_missing(self, db: AsyncSession, hcp_id: str, alias_name: str, created_by: str) -> None:
        alias_name = alias_name.strip()
        existing = await db.scalar(select(HcpAlias.id).where(
            HcpAlias.hcp_id == hcp_id, func.lower(HcpAlias.alias_name) == alias_name.lower(),
        ))
        if not existing:
            db.add(HcpAlias(hcp_id=hcp_id, alias_name=alias_name, created_by=created_by))

    async def match_to_hcp(self, db: AsyncSession, nomination: Nomination, data: MatchRequest,
                           matched_by: str) -> Nomination:
        if not await db.get(Hcp, data.hcp_id):
            raise BadRequestError("HCP not found")
        if data.add_alias:
            await self._add_alias_if_missing(db, data.hcp_id, nomination.raw_name_entered, matched_by)

        confidence = data.match_confidence if data.match_confidence is not None else 100
        nomination.matched_hcp_id = data.hcp_id
        nomination.match_status = match_status_for(data.match_type, confidence)
        nomination.match_type = data.match_type or MatchType.EXACT
        nomination.match_confidence = confidence
        nomination.matched_by = matched_by
        nomination.matched_at = utcnow()
        await db.flush()
        log_event(logger, LogActions.NOMINATION_MATCHED, nomination_id=nomination.id,
                  hcp_id=data.hcp_id, status=nomination.match_status)
        return nomination

    async def create_hcp_and_match(self, db: AsyncSession, nomination: Nomination, data: CreateHcpFromNomination,
                                   matched_by: str) -> Nomination:
        if await db.scalar(select(Hcp.id).where(Hcp.npi == data.npi)):
            raise BadRequestError("An HCP with this NPI already exists")
        hcp = Hcp(**data.model_dump())
        db.add(hcp)
        await db.flush()

        full_name = f"{data.first_name} {data.last_name}".lower().strip()
        if full_name != nomination.raw_name_entered.lower().strip():
            db.add(HcpAlias(hcp_id=hcp.id, alias_name=nomination.raw_name_entered.strip(), created_by=matched_by))

        nomination.matched_hcp_id = hcp.id
        nomination.match_status = NominationStatus.NEW_HCP
        nomination.matched_by = matched_by
        nomination.matched_at = utcnow()
        await db.flush()
        return nomination

    async def exclude(self, db: AsyncSession, nomination: Nomination, matched_by: str,
                      reason: Optional[str] = None) -> Nomination:
        nomination.match_status = NominationStatus.EXCLUDED
        nomination.matched_by = matched_by
        nomination.matched_at = utcnow()
        nomination.exclude_reason = reason or None
        await db.flush()
        return nomination

    async def update_raw_name(self, db: AsyncSession, nomination: Nomination, raw_name: str) -> Nomination:
        if nomination.match_status not in (NominationStatus.UNMATCHED, NominationStatus.REVIEW_NEEDED):
            raise BadRequestError("Can only edit unmatched or review-needed nominations")
        nomination.raw_name_entered = raw_name.strip()
        nomination.match_status = NominationStatus.UNMATCHED
        nomination.matched_hcp_id = None
        nomination.match_type = None
        nomination.match_confidence = None
        nomination.matched_by = None
        nomination.matched_at = None
        await db.flush()
        return nomination

    async def bulk_auto_match(self, db: AsyncSession, campaign_id: str, matched_by: str) -> dict:
        unmatched = (await db.execute(
            self._campaign_query(campaign_id).where(Nomination.match_status == NominationStatus.UNMATCHED)
        )).scalars().all()

        matched, errors = 0, []
        for nomination in unmatched:
            suggestions = await self.get_suggestions(db, nomination)
            if not suggestions or suggestions[0]["score"] < AUTO_MATCH_THRESHOLD:
                continue
            best = suggestions[0]
            try:
                await self.match_to_hcp(
                    db,
                    nomination,
                    MatchRequest(
                        hcp_id=best["hcp"]["id"],
                        match_type=best["match_type"],
                        match_confidence=best["score"],
                        add_alias=not best["is_name_match"],
                    ),
                    matched_by,
                )
                matched += 1
            except BadRequestError:
                errors.append(f'Failed to auto-match "{nomination.raw_name_entered}"')

        log_event(logger, LogActions.NOMINATION_BULK_MATCHED, campaign_id=campaign_id,
                  matched=matched, total=len(unmatched))
        return {"matched": matched, "total": len(unmatched), "errors": errors}


nomination_service = NominationService()
