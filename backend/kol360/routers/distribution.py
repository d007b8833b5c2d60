from fastapi import APIRouter, Depends, UploadFile, File
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.auth import UserPrincipal, require_client_admin
from kol360.database import get_db
from kol360.dependencies import get_campaign_for_user
from kol360.models.campaign import Campaign
from kol360.schemas.campaign import AssignHcpsRequest
from kol360.schemas.common import CampaignHcpImportResult
from kol360.services.audit_service import create_audit_log
from kol360.services.distribution_service import distribution_service
from kol360.services.spreadsheet import read_upload

router = APIRouter()


@router.get("/{campaign_id}/hcps")
async def list_campaign_hcps(
    campaign: Campaign = Depends(get_campaign_for_user),
    db: AsyncSession = Depends(get_db),
):
    return {"items": await distribution_service.list_campaign_hcps(db, campaign.id)}


@router.post("/{campaign_id}/hcps")
async def assign_hcps(
    data: AssignHcpsRequest,
    campaign: Campaign = Depends(get_campaign_for_user),
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    result = await distribution_service.assign_hcps(db, campaign, data.hcp_ids)
    await create_audit_log(db, current_user.sub, "campaign.hcps_assigned", "Campaign", campaign.id,
                           new_values=result, tenant_id=campaign.client_id)
    return result


@router.post("/{campaign_id}/import-hcps", response_model=CampaignHcpImportResult)
async def import_campaign_hcps(
    file: UploadFile = File(...),
    campaign: Campaign = Depends(get_campaign_for_user),
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    result = await distribution_service.import_hcps(db, campaign, await read_upload(file), file.filename)
    await create_audit_log(db, current_user.sub, "campaign.hcps_imported", "Campaign", campaign.id,
                           new_values={k: v for k, v in result.items() if k != "errors"},
                           tenant_id=campaign.client_id)
    return result


@router.delete("/{campaign_id}/hcps/{hcp_id}")
async def remove_hcp(
    hcp_id: str,
    campaign: Campaign = Depends(get_campaign_for_user),
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    result = await distribution_service.remove_hcp(db, campaign.id, hcp_id)
    await create_audit_log(db, current_user.sub, "campaign.hcp_removed", "Campaign", campaign.id,
                           old_values={"hcp_id": hcp_id}, tenant_id=campaign.client_id)
    return result


@router.post("/{campaign_id}/send-invitations")
async def send_invitations(
    campaign: Campaign = Depends(get_campaign_for_user),
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    result = await distribution_service.send_invitations(db, campaign)
    await create_audit_log(db, current_user.sub, "distribution.invitations_sent", "Campaign", campaign.id,
                           new_values={"sent": result["sent"], "failed": result["failed"]},
                           tenant_id=campaign.client_id)
    return result


@router.post("/{campaign_id}/send-reminders")
async def send_reminders(
    campaign: Campaign = Depends(get_campaign_for_user),
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    result = await distribution_service.send_reminders(db, campaign)
    await create_audit_log(db, current_user.sub, "distribution.reminders_sent", "Campaign", campaign.id,
                           new_values={"sent": result["sent"]}, tenant_id=campaign.client_id)
    return result


@router.get("/{campaign_id}/distribution-stats")
async def distribution_stats(
    campaign: Campaign = Depends(get_campaign_for_user),
    db: AsyncSession = Depends(get_db),
):
    return await distribution_service.get_stats(db, campaign.id)
