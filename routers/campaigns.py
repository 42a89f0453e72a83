from fastapi import APIRouter, Depends, HTTPException

from dependencies import get_store, get_current_user
from schemas import CampaignCreate, CampaignUpdate, SelectedCampaignRequest
from services.fundraiser import FundraiserStore

router = APIRouter(prefix="/api/campaigns", dependencies=[Depends(get_current_user)])

# ==========================================
#               CAMPANHAS
# ==========================================


@router.get("")
def list_campaigns(store: FundraiserStore = Depends(get_store)):
    return {
        "campaigns": list(store.campaigns.values()),
        "selected_campaign_id": store.selected_campaign_id,
        "active_campaign_id": store.active_campaign.id if store.active_campaign else None,
    }


@router.post("", status_code=201)
async def create_campaign(payload: CampaignCreate, store: FundraiserStore = Depends(get_store)):
    return await store.add_campaign(payload.model_dump())


@router.put("/selected")
def select_campaign(payload: SelectedCampaignRequest, store: FundraiserStore = Depends(get_store)):
    if payload.campaign_id and payload.campaign_id not in store.campaigns:
        raise HTTPException(status_code=404, detail="Campanha não encontrada")

    store.set_selected_campaign(payload.campaign_id)
    return {"selected_campaign_id": store.selected_campaign_id}


@router.patch("/{campaign_id}")
async def update_campaign(
    campaign_id: str,
    payload: CampaignUpdate,
    store: FundraiserStore = Depends(get_store),
):
    return await store.update_campaign(campaign_id, payload.model_dump(exclude_unset=True))


@router.delete("/{campaign_id}")
async def delete_campaign(campaign_id: str, store: FundraiserStore = Depends(get_store)):
    await store.delete_campaign(campaign_id)
    return {"success": True, "selected_campaign_id": store.selected_campaign_id}
