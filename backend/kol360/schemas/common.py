import math
from pydantic import BaseModel


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


def paginate(page: int, limit: int, total: int) -> Pagination:
    return Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit) if limit else 0)


class RowError(BaseModel):
    row: int
    error: str


class ImportResult(BaseModel):
    """Outcome of a spreadsheet import. Rows in `errors` were skipped."""

    total: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: list[RowError] = []


class CampaignHcpImportResult(BaseModel):
    total: int = 0
    hcps_created: int = 0
    hcps_existing: int = 0
    added_to_campaign: int = 0
    skipped: int = 0
    errors: list[RowError] = []


class PaymentStatusImportResult(BaseModel):
    processed: int = 0
    updated: int = 0
    errors: list[RowError] = []
