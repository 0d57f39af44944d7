from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from portal.core.authz import RequestContext
from portal.core.database import get_db
from portal.dependencies import get_request_context
from portal.schemas.user_product import (
    EndpointCreate,
    EndpointOut,
    EndpointRunRequest,
    UserProductCreate,
    UserProductOut,
    UserProductUpdate,
)
from portal.services import provisioning, user_products

router = APIRouter()


@router.get("", response_model=list[UserProductOut])
def list_user_products(
    user_id: Optional[int] = Query(default=None),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return user_products.list_user_products(db, ctx, user_id=user_id)


@router.post("", response_model=UserProductOut, status_code=201)
def assign_user_product(
    payload: UserProductCreate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return user_products.assign_user_product(db, ctx, **payload.model_dump())


@router.get("/{user_product_id}", response_model=UserProductOut)
def get_user_product(user_product_id: int, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    return user_products.get_user_product(db, ctx, user_product_id)


@router.patch("/{user_product_id}", response_model=UserProductOut)
def update_user_product(
    user_product_id: int,
    payload: UserProductUpdate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return user_products.update_user_product(db, ctx, user_product_id, **payload.model_dump(exclude_unset=True))


@router.delete("/{user_product_id}", status_code=204)
def delete_user_product(user_product_id: int, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    user_products.delete_user_product(db, ctx, user_product_id)
    return Response(status_code=204)


@router.post("/{user_product_id}/endpoints", response_model=EndpointOut, status_code=201)
def add_endpoint(
    user_product_id: int,
    payload: EndpointCreate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return user_products.add_endpoint(db, ctx, user_product_id, **payload.model_dump())


@router.delete("/endpoints/{endpoint_id}", status_code=204)
def delete_endpoint(endpoint_id: int, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    user_products.delete_endpoint(db, ctx, endpoint_id)
    return Response(status_code=204)


@router.post("/endpoints/{endpoint_id}/run")
def run_endpoint(
    endpoint_id: int,
    payload: EndpointRunRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return provisioning.run_user_product_endpoint(db, ctx, endpoint_id, payload.params)
