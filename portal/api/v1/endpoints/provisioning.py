from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from portal.core.authz import RequestContext
from portal.core.database import get_db
from portal.dependencies import get_request_context
from portal.schemas.user_product import ApiSettingIn, ApiSettingOut
from portal.services import provisioning

router = APIRouter()


@router.get("/settings", response_model=list[ApiSettingOut])
def list_settings(ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    return provisioning.list_api_settings(db, ctx)


@router.post("/settings", response_model=ApiSettingOut, status_code=201)
def create_setting(payload: ApiSettingIn, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    return provisioning.save_api_setting(db, ctx, **payload.model_dump())


@router.put("/settings/{setting_id}", response_model=ApiSettingOut)
def update_setting(
    setting_id: int,
    payload: ApiSettingIn,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return provisioning.save_api_setting(db, ctx, setting_id=setting_id, **payload.model_dump())
