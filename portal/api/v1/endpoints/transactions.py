from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from portal.core.authz import RequestContext
from portal.core.database import get_db
from portal.dependencies import get_request_context
from portal.schemas.transaction import TransactionOut
from portal.services import ledger

router = APIRouter()


@router.get("", response_model=list[TransactionOut])
def list_transactions(
    user_id: Optional[int] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return ledger.list_transactions(db, ctx, user_id=user_id, limit=limit)
