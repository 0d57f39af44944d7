from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from portal.core.authz import RequestContext
from portal.core.database import get_db
from portal.dependencies import get_request_context
from portal.middlewares.rate_limit import limiter
from portal.schemas.client import (
    ClientCreate,
    ClientOut,
    ClientProductOut,
    ClientProductStatusUpdate,
    PurchaseRequest,
)
from portal.schemas.transaction import TransactionOut
from portal.services import clients, ledger

router = APIRouter()


@router.get("", response_model=list[ClientOut])
def list_clients(ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    return clients.list_clients(db, ctx)


@router.post("", response_model=ClientOut, status_code=201)
def create_client(payload: ClientCreate, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    return clients.create_client(db, ctx, **payload.model_dump())


@router.get("/{client_id}/products", response_model=list[ClientProductOut])
def list_client_products(client_id: int, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    return clients.list_client_products(db, ctx, client_id)


@router.patch("/{client_id}/products/{client_product_id}", response_model=ClientProductOut)
def update_client_product_status(
    client_id: int,
    client_product_id: int,
    payload: ClientProductStatusUpdate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return clients.update_client_product_status(db, ctx, client_id, client_product_id, payload.status)


@router.post("/{client_id}/purchase", response_model=TransactionOut, status_code=201)
@limiter.limit("30/minute")
def purchase(
    request: Request,
    client_id: int,
    payload: PurchaseRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return ledger.purchase(
        db,
        ctx,
        client_id=client_id,
        product_id=payload.product_id,
        reference_date=payload.reference_date,
        idempotency_key=payload.idempotency_key or request.headers.get("Idempotency-Key"),
    )
