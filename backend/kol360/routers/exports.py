from typing import Literal
from fastapi import APIRouter, Depends, Query, UploadFile, File
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.auth import UserPrincipal, require_client_admin
from kol360.database import get_db
from kol360.dependencies import get_campaign_for_user
from kol360.models.campaign import Campaign
from kol360.schemas.common import PaymentStatusImportResult
from kol360.services.audit_service import create_audit_log
from kol360.services.spreadsheet import read_upload
from kol360.services.export_service import export_service, ExportFile

router = APIRouter()


ExportFormat = Literal["xlsx", "csv"]


def attachment(export: ExportFile) -> StreamingResponse:
    return StreamingResponse(
        iter([export.render()]),
        media_type=export.media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{export.filename}"',
            "X-Record-Count": str(export.record_count),
        },
    )


@router.post("/{campaign_id}/export/responses")
async def export_responses(
    fmt: ExportFormat = Query("xlsx", alias="format"),
    campaign: Campaign = Depends(get_campaign_for_user),
    db: AsyncSession = Depends(get_db),
):
    return attachment(await export_service.export_responses(db, campaign.id, fmt))


@router.post("/{campaign_id}/export/scores")
async def export_scores(
    fmt: ExportFormat = Query("xlsx", alias="format"),
    campaign: Campaign = Depends(get_campaign_for_user),
    db: AsyncSession = Depends(get_db),
):
    return attachment(await export_service.export_scores(db, campaign.id, fmt))


@router.post("/{campaign_id}/export/payments")
async def export_payments(
    fmt: ExportFormat = Query("xlsx", alias="format"),
    campaign: Campaign = Depends(get_campaign_for_user),
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    export = await export_service.export_payments(db, campaign.id, current_user.sub, fmt)
    await create_audit_log(db, current_user.sub, "payments.exported", "Campaign", campaign.id,
                           new_values={"filename": export.filename, "record_count": export.record_count},
                           tenant_id=campaign.client_id)
    return attachment(export)


@router.get("/{campaign_id}/payments")
async def list_payments(
    status: str = Query(""),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    campaign: Campaign = Depends(get_campaign_for_user),
    db: AsyncSession = Depends(get_db),
):
    return await export_service.list_payments(db, campaign.id, status, page, limit)


@router.get("/{campaign_id}/payments/stats")
async def payment_stats(campaign: Campaign = Depends(get_campaign_for_user), db: AsyncSession = Depends(get_db)):
    return await export_service.get_payment_stats(db, campaign.id)


@router.post("/{campaign_id}/payments/import-status", response_model=PaymentStatusImportResult)
async def import_payment_status(
    file: UploadFile = File(...),
    campaign: Campaign = Depends(get_campaign_for_user),
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    content = await read_upload(file)
    result = await export_service.import_payment_status(db, campaign.id, content, current_user.sub, file.filename)
    await create_audit_log(db, current_user.sub, "payments.status_imported", "Campaign", campaign.id,
                           new_values={"processed": result["processed"], "updated": result["updated"]},
                           tenant_id=campaign.client_id)
    return result
