"""Credit ledger: append-only transactions plus the denormalized user balance.

Every balance change is written together with exactly one ``Transaction`` row
under a row lock on the user, and committed once.
"""
import enum
import logging
import secrets
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation

from sqlalchemy import func
from sqlalchemy.orm import Session

from portal.core.authz import RequestContext, requires_role
from portal.core.errors import InsufficientBalance, NotFound, ValidationError
from portal.models import (
    ClientProduct,
    PaymentMode,
    Product,
    ProductStatus,
    Transaction,
    TransactionType,
    User,
    UserRole,
)
from portal.services.clients import get_client_for
from portal.services.pricing import CENT, next_billing_date, quote_for_user

logger = logging.getLogger(__name__)

REFERENCE_MAX_LEN = 64


class CreditDirection(str, enum.Enum):
    ADD = "add"
    SUBTRACT = "subtract"


@dataclass(frozen=True)
class BalanceCheck:
    user_id: int
    stored: Decimal
    derived: Decimal

    @property
    def consistent(self) -> bool:
        return self.stored == self.derived


def _utc_midnight(value: date) -> datetime:
    return datetime.combine(value, time.min).replace(tzinfo=timezone.utc)


def _new_reference(prefix: str) -> str:
    return f"{prefix}_{secrets.token_hex(8)}"


def _normalize_key(value: str | None) -> str | None:
    key = str(value or "").strip()
    if not key:
        return None
    if len(key) > REFERENCE_MAX_LEN:
        raise ValidationError(
            f"Idempotency key must be at most {REFERENCE_MAX_LEN} characters",
            field="idempotency_key",
        )
    return key


def _parse_amount(value) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError("Amount must be a number", field="amount")
    if not amount.is_finite():
        raise ValidationError("Amount must be a number", field="amount")
    amount = amount.quantize(CENT)
    # Sub-cent amounts round to zero.
    if amount <= 0:
        raise ValidationError("Amount must be greater than zero", field="amount")
    return amount


def _parse_direction(value) -> CreditDirection:
    raw = str(getattr(value, "value", value) or "").strip().lower()
    for member in CreditDirection:
        if raw == member.value:
            return member
    raise ValidationError("Direction must be 'add' or 'subtract'", field="direction")


def _lock_user(db: Session, user_id: int) -> User:
    user = (
        db.query(User)
        .filter(User.id == user_id)
        .with_for_update()
        .populate_existing()
        .one_or_none()
    )
    if not user:
        raise NotFound("User", user_id)
    return user


def _record(
    db: Session,
    user: User,
    tx_type: TransactionType,
    amount: Decimal,
    description: str,
    reference: str,
    *,
    affects_balance: bool,
) -> Transaction:
    entry = Transaction(
        user_id=user.id,
        reference=reference,
        tx_type=tx_type,
        amount=amount,
        description=description[:255],
        affects_balance=affects_balance,
    )
    db.add(entry)
    return entry


def _replay_for_key(
    db: Session, ctx: RequestContext, key: str, *, client_id: int, product_id: int
) -> Transaction | None:
    """The earlier purchase recorded under ``key``, if it was this exact request."""
    existing = db.query(Transaction).filter(Transaction.reference == key).first()
    if existing is None:
        return None
    if existing.user_id != ctx.user_id:
        raise ValidationError("Idempotency key has already been used", field="idempotency_key")
    subscription = existing.client_product
    if (
        existing.tx_type != TransactionType.DEBIT
        or subscription is None
        or (subscription.client_id, subscription.product_id) != (client_id, product_id)
    ):
        raise ValidationError("Idempotency key was used for a different request", field="idempotency_key")
    return existing


@requires_role(UserRole.RESELLER)
def purchase(
    db: Session,
    ctx: RequestContext,
    *,
    client_id: int,
    product_id: int,
    reference_date: date | None = None,
    idempotency_key: str | None = None,
) -> Transaction:
    """Charge the calling reseller for a client subscription.

    Credit-mode resellers must cover the pro-rata price from their balance.
    Debit-mode resellers are invoiced elsewhere, so the debit is recorded
    with ``affects_balance=False`` and the balance is left alone.
    """
    key = _normalize_key(idempotency_key)
    if key:
        existing = _replay_for_key(db, ctx, key, client_id=client_id, product_id=product_id)
        if existing is not None:
            logger.info("Replayed purchase user_id=%s reference=%s", ctx.user_id, key)
            return existing

    client = get_client_for(db, ctx, client_id)
    product = db.get(Product, product_id)
    if not product:
        raise NotFound("Product", product_id)
    if product.status == ProductStatus.OUT_OF_STOCK:
        raise ValidationError(f"{product.name} is out of stock", field="product_id")

    on_date = reference_date or datetime.now(timezone.utc).date()
    reference = key or _new_reference("PUR")

    try:
        user = _lock_user(db, ctx.user_id)
        quote = quote_for_user(product, user, on_date)
        amount = quote.final_price
        description = f"Purchase of {product.name} for client {client.name}"

        if user.payment_mode == PaymentMode.CREDIT:
            available = Decimal(user.credit_balance)
            if available < amount:
                logger.warning(
                    "Insufficient balance user_id=%s required=%s available=%s",
                    user.id,
                    amount,
                    available,
                )
                raise InsufficientBalance(required=amount, available=available)
            entry = _record(db, user, TransactionType.DEBIT, amount, description, reference, affects_balance=True)
            user.credit_balance = available - amount
        else:
            entry = _record(db, user, TransactionType.DEBIT, amount, description, reference, affects_balance=False)

        db.add(
            ClientProduct(
                client_id=client.id,
                product_id=product.id,
                transaction=entry,
                charged_amount=amount,
                last_billed_date=_utc_midnight(on_date),
                next_billing_date=_utc_midnight(next_billing_date(on_date)),
            )
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(entry)
    logger.info(
        "Purchase recorded user_id=%s mode=%s product_id=%s client_id=%s amount=%s days=%s/%s reference=%s",
        ctx.user_id,
        user.payment_mode.value,
        product.id,
        client.id,
        amount,
        quote.days_remaining,
        quote.total_days_in_month,
        reference,
    )
    return entry


@requires_role(UserRole.ADMIN)
def adjust_credit(
    db: Session,
    ctx: RequestContext,
    *,
    user_id: int,
    amount,
    direction,
    description: str | None = None,
) -> Transaction:
    # No lower bound: subtracting below zero is an administrative override.
    direction = _parse_direction(direction)
    amount = _parse_amount(amount)
    if direction == CreditDirection.ADD:
        tx_type, delta = TransactionType.CREDIT, amount
        default_description = "Credit added by admin"
    else:
        tx_type, delta = TransactionType.DEBIT, -amount
        default_description = "Credit deducted by admin"

    try:
        user = _lock_user(db, user_id)
        entry = _record(
            db,
            user,
            tx_type,
            amount,
            (description or "").strip() or default_description,
            _new_reference("ADJ"),
            affects_balance=True,
        )
        user.credit_balance = Decimal(user.credit_balance) + delta
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(entry)
    logger.info(
        "Credit adjusted admin_id=%s user_id=%s direction=%s amount=%s balance=%s",
        ctx.user_id,
        user_id,
        direction.value,
        amount,
        user.credit_balance,
    )
    return entry


def ledger_balance(db: Session, user_id: int) -> Decimal:
    user = db.get(User, user_id)
    if not user:
        raise NotFound("User", user_id)
    rows = (
        db.query(Transaction.tx_type, func.coalesce(func.sum(Transaction.amount), 0))
        .filter(Transaction.user_id == user_id, Transaction.affects_balance.is_(True))
        .group_by(Transaction.tx_type)
        .all()
    )
    totals = {tx_type: Decimal(str(total)) for tx_type, total in rows}
    credits = totals.get(TransactionType.CREDIT, Decimal("0"))
    debits = totals.get(TransactionType.DEBIT, Decimal("0"))
    return (Decimal(user.opening_balance or 0) + credits - debits).quantize(CENT)


@requires_role(UserRole.ADMIN)
def verify_balance(db: Session, ctx: RequestContext, user_id: int) -> BalanceCheck:
    derived = ledger_balance(db, user_id)
    user = db.get(User, user_id)
    check = BalanceCheck(user_id=user_id, stored=Decimal(user.credit_balance).quantize(CENT), derived=derived)
    if not check.consistent:
        logger.warning(
            "Balance drift user_id=%s stored=%s derived=%s", user_id, check.stored, check.derived
        )
    return check


@requires_role(UserRole.ADMIN, UserRole.RESELLER)
def list_transactions(
    db: Session,
    ctx: RequestContext,
    *,
    user_id: int | None = None,
    limit: int = 50,
) -> list[Transaction]:
    if not ctx.is_admin:
        user_id = ctx.user_id
    query = db.query(Transaction)
    if user_id is not None:
        query = query.filter(Transaction.user_id == user_id)
    return query.order_by(Transaction.id.desc()).limit(max(1, min(int(limit), 200))).all()
