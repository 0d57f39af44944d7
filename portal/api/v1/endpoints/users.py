import logging
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from portal.core.authz import RequestContext
from portal.core.database import get_db
from portal.core.security import hash_password
from portal.dependencies import get_current_user, get_request_context, require_admin
from portal.models import User, UserRole
from portal.schemas.transaction import TransactionOut
from portal.schemas.user import (
    BalanceCheckOut,
    CreditAdjustRequest,
    DashboardConfig,
    UserCreate,
    UserOut,
    UserUpdate,
)
from portal.services import ledger

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=list[UserOut])
def list_users(
    role: UserRole | None = Query(default=None),
    admin=Depends(require_admin),
    db: Session = Depends(get_db),
):
    query = db.query(User)
    if role is not None:
        query = query.filter(User.role == role)
    return query.order_by(User.id.asc()).all()


@router.post("", response_model=UserOut, status_code=201)
def create_user(payload: UserCreate, admin=Depends(require_admin), db: Session = Depends(get_db)):
    username = payload.username.strip()
    if db.query(User).filter(User.username == username).first():
        raise HTTPException(status_code=400, detail="Username already registered")
    opening = Decimal(payload.opening_balance).quantize(Decimal("0.01"))
    user = User(
        username=username,
        hashed_password=hash_password(payload.password),
        full_name=payload.full_name,
        email=payload.email,
        phone=payload.phone,
        role=payload.role,
        payment_mode=payload.payment_mode,
        reseller_group=payload.reseller_group,
        opening_balance=opening,
        credit_balance=opening,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User created id=%s role=%s by admin_id=%s", user.id, user.role.value, admin.id)
    return user


@router.patch("/{user_id}", response_model=UserOut)
def update_user(user_id: int, payload: UserUpdate, admin=Depends(require_admin), db: Session = Depends(get_db)):
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(user, key, value)
    db.commit()
    db.refresh(user)
    return user


@router.post("/{user_id}/credit", response_model=TransactionOut)
def adjust_credit(
    user_id: int,
    payload: CreditAdjustRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return ledger.adjust_credit(
        db,
        ctx,
        user_id=user_id,
        amount=payload.amount,
        direction=payload.direction,
        description=payload.description,
    )


@router.get("/{user_id}/balance-check", response_model=BalanceCheckOut)
def balance_check(user_id: int, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    check = ledger.verify_balance(db, ctx, user_id)
    return BalanceCheckOut(
        user_id=check.user_id,
        stored=check.stored,
        derived=check.derived,
        consistent=check.consistent,
    )


@router.get("/me/dashboard", response_model=DashboardConfig)
def get_dashboard(user: User = Depends(get_current_user)):
    return DashboardConfig(config=user.dashboard_config or {})


@router.put("/me/dashboard", response_model=DashboardConfig)
def save_dashboard(payload: DashboardConfig, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    user.dashboard_config = payload.config
    db.commit()
    return DashboardConfig(config=user.dashboard_config or {})
