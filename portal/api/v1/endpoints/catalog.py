from datetime import date, datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from portal.core.authz import RequestContext
from portal.core.database import get_db
from portal.dependencies import get_current_user, get_request_context
from portal.models import User
from portal.schemas.catalog import (
    CategoryCreate,
    CategoryOut,
    CategoryTreeOut,
    CategoryUpdate,
    PricedProductOut,
    ProductCreate,
    ProductOut,
    ProductUpdate,
    QuoteOut,
)
from portal.services import catalog
from portal.services.pricing import price_for_group, prorate

router = APIRouter()


def _today() -> date:
    return datetime.now(timezone.utc).date()


@router.get("/categories", response_model=list[CategoryOut])
def list_categories(
    master_category: Optional[str] = Query(default=None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return catalog.list_categories(db, master_category)


@router.get("/categories/tree", response_model=list[CategoryTreeOut])
def category_tree(
    master_category: Optional[str] = Query(default=None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return [
        CategoryTreeOut(
            **CategoryOut.model_validate(node.category).model_dump(),
            children=[CategoryOut.model_validate(child.category) for child in node.children],
        )
        for node in catalog.category_tree(db, master_category)
    ]


@router.post("/categories", response_model=CategoryOut, status_code=201)
def create_category(payload: CategoryCreate, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    return catalog.create_category(db, ctx, **payload.model_dump())


@router.patch("/categories/{category_id}", response_model=CategoryOut)
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return catalog.update_category(db, ctx, category_id, **payload.model_dump(exclude_unset=True))


@router.delete("/categories/{category_id}", status_code=204)
def delete_category(category_id: int, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    catalog.delete_category(db, ctx, category_id)
    return Response(status_code=204)


@router.get("/products", response_model=list[ProductOut])
def list_products(
    master_category: Optional[str] = Query(default=None),
    category_id: Optional[int] = Query(default=None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return catalog.list_products(db, master_category=master_category, category_id=category_id)


@router.post("/products", response_model=ProductOut, status_code=201)
def create_product(payload: ProductCreate, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    return catalog.create_product(db, ctx, **payload.model_dump())


@router.patch("/products/{product_id}", response_model=ProductOut)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return catalog.update_product(db, ctx, product_id, **payload.model_dump(exclude_unset=True))


@router.delete("/products/{product_id}", status_code=204)
def delete_product(product_id: int, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    catalog.delete_product(db, ctx, product_id)
    return Response(status_code=204)


@router.get("/priced", response_model=list[PricedProductOut])
def priced_catalog(
    master_category: Optional[str] = Query(default=None),
    reference_date: Optional[date] = Query(default=None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    items = catalog.priced_catalog(db, user, reference_date or _today(), master_category=master_category)
    return [
        PricedProductOut(
            id=item.product.id,
            name=item.product.name,
            category_id=item.product.category_id,
            status=item.product.status,
            group_price=item.group_price,
            prorated_price=item.quote.final_price,
            days_remaining=item.quote.days_remaining,
            total_days_in_month=item.quote.total_days_in_month,
        )
        for item in items
    ]


@router.get("/products/{product_id}/quote", response_model=QuoteOut)
def quote(
    product_id: int,
    reference_date: Optional[date] = Query(default=None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    product = catalog.get_product(db, product_id)
    on_date = reference_date or _today()
    group_price = price_for_group(product, user.reseller_group)
    result = prorate(group_price, on_date)
    return QuoteOut(
        product_id=product.id,
        reference_date=on_date,
        group_price=group_price,
        final_price=result.final_price,
        days_remaining=result.days_remaining,
        total_days_in_month=result.total_days_in_month,
    )
