from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from portal.core.authz import RequestContext
from portal.core.database import get_db
from portal.dependencies import get_request_context
from portal.middlewares.rate_limit import limiter
from portal.schemas.order import OrderCreate, OrderDecision, OrderOut
from portal.services import orders

router = APIRouter()


@router.post("", response_model=OrderOut, status_code=201)
@limiter.limit("20/minute")
def submit_order(
    request: Request,
    payload: OrderCreate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    details = orders.OrderDetails(
        address=payload.address,
        contact_name=payload.contact_name,
        contact_phone=payload.contact_phone,
        country=payload.country,
        sim_number=payload.sim_number,
    )
    return orders.create_order(
        db,
        ctx,
        client_id=payload.client_id,
        product_id=payload.product_id,
        provision_method=payload.provision_method,
        details=details,
    )


@router.get("", response_model=list[OrderOut])
def list_orders(
    status: Optional[str] = Query(default=None),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return orders.list_orders(db, ctx, status=status or None)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: int, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    return orders.get_order(db, ctx, order_id)


@router.post("/{order_id}/decision", response_model=OrderOut)
def decide_order(
    order_id: int,
    payload: OrderDecision,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return orders.decide_order(
        db,
        ctx,
        order_id=order_id,
        decision=payload.decision,
        rejection_reason=payload.rejection_reason,
    )
