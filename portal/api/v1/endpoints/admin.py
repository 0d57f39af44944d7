from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from portal.core.database import get_db
from portal.dependencies import require_admin
from portal.models import (
    Client,
    ClientProduct,
    OrderStatus,
    PaymentMode,
    ProductOrder,
    SubscriptionStatus,
    Transaction,
    User,
    UserRole,
)
from portal.schemas.admin import ActivityItem, AdminStats

router = APIRouter()


@router.get("/stats", response_model=AdminStats)
def stats(admin=Depends(require_admin), db: Session = Depends(get_db)):
    resellers = db.query(User).filter(User.role == UserRole.RESELLER)
    outstanding = (
        db.query(func.coalesce(func.sum(User.credit_balance), 0))
        .filter(User.role == UserRole.RESELLER, User.payment_mode == PaymentMode.CREDIT)
        .scalar()
    )
    return AdminStats(
        total_resellers=resellers.count(),
        active_resellers=resellers.filter(User.is_active.is_(True)).count(),
        total_clients=db.query(Client).count(),
        pending_orders=db.query(ProductOrder).filter(ProductOrder.status == OrderStatus.PENDING).count(),
        active_subscriptions=db.query(ClientProduct).filter(ClientProduct.status == SubscriptionStatus.ACTIVE).count(),
        total_credit_outstanding=Decimal(str(outstanding or 0)),
    )


@router.get("/activity", response_model=list[ActivityItem])
def recent_activity(
    limit: int = Query(default=20, ge=1, le=100),
    admin=Depends(require_admin),
    db: Session = Depends(get_db),
):
    items = []
    for tx in db.query(Transaction).order_by(Transaction.id.desc()).limit(limit).all():
        items.append(
            ActivityItem(
                kind="transaction",
                id=tx.id,
                user_id=tx.user_id,
                summary=f"{tx.tx_type.value} {tx.amount}: {tx.description}",
                created_at=tx.created_at.isoformat() if tx.created_at else None,
            )
        )
    for order in db.query(ProductOrder).order_by(ProductOrder.id.desc()).limit(limit).all():
        items.append(
            ActivityItem(
                kind="order",
                id=order.id,
                user_id=order.reseller_id,
                summary=f"Order {order.status.value} ({order.provision_method.value})",
                created_at=order.created_at.isoformat() if order.created_at else None,
            )
        )
    items.sort(key=lambda item: item.created_at or "", reverse=True)
    return items[:limit]
