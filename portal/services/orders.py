"""Provisioning orders: pending -> active | rejected, decided once by an admin.

Orders never touch the ledger; billing goes through ``ledger.purchase``.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from portal.core.authz import RequestContext, requires_role
from portal.core.errors import InvalidStateTransition, NotFound, PermissionDenied, ValidationError
from portal.models import (
    OrderStatus,
    Product,
    ProductOrder,
    ProductStatus,
    ProvisionMethod,
    UserProduct,
    UserRole,
)
from portal.services.clients import get_client_for

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = {
    ProvisionMethod.COURIER: ("address", "contact_name", "contact_phone"),
    ProvisionMethod.SELF: ("sim_number",),
}
OPTIONAL_FIELDS = {
    ProvisionMethod.COURIER: ("country",),
    ProvisionMethod.SELF: (),
}
DECISIONS = (OrderStatus.ACTIVE, OrderStatus.REJECTED)
REJECTION_REASON_MAX_LEN = 1000


@dataclass(frozen=True)
class OrderDetails:
    address: str | None = None
    contact_name: str | None = None
    contact_phone: str | None = None
    country: str | None = None
    sim_number: str | None = None


def _text(value) -> str | None:
    text = str(value or "").strip()
    return text or None


def parse_provision_method(value) -> ProvisionMethod:
    raw = str(getattr(value, "value", value) or "").strip().lower()
    for member in ProvisionMethod:
        if raw == member.value:
            return member
    raise ValidationError("Provision method must be 'courier' or 'self'", field="provision_method")


def parse_decision(value) -> OrderStatus:
    raw = str(getattr(value, "value", value) or "").strip().lower()
    for member in DECISIONS:
        if raw == member.value:
            return member
    raise ValidationError("Decision must be 'active' or 'rejected'", field="decision")


def validate_details(method: ProvisionMethod, details: OrderDetails) -> dict:
    """Return the cleaned method-specific fields, or raise on the first missing one."""
    values = {name: _text(getattr(details, name)) for name in REQUIRED_FIELDS[method] + OPTIONAL_FIELDS[method]}
    missing = [name for name in REQUIRED_FIELDS[method] if not values[name]]
    if missing:
        raise ValidationError(
            f"Missing required fields for {method.value} orders: {', '.join(missing)}",
            field=missing[0],
        )
    return values


@requires_role(UserRole.RESELLER)
def create_order(
    db: Session,
    ctx: RequestContext,
    *,
    client_id: int,
    product_id: int,
    provision_method,
    details: OrderDetails,
) -> ProductOrder:
    method = parse_provision_method(provision_method)
    fields = validate_details(method, details)

    client = get_client_for(db, ctx, client_id)
    product = db.get(Product, product_id)
    if not product:
        raise NotFound("Product", product_id)
    if product.status == ProductStatus.OUT_OF_STOCK:
        raise ValidationError(f"{product.name} is out of stock", field="product_id")

    order = ProductOrder(
        reseller_id=ctx.user_id,
        client_id=client.id,
        product_id=product.id,
        status=OrderStatus.PENDING,
        provision_method=method,
        **fields,
    )
    db.add(order)
    db.commit()
    db.refresh(order)
    logger.info(
        "Order submitted id=%s reseller_id=%s product_id=%s method=%s",
        order.id,
        ctx.user_id,
        product.id,
        method.value,
    )
    return order


@requires_role(UserRole.ADMIN)
def decide_order(
    db: Session,
    ctx: RequestContext,
    *,
    order_id: int,
    decision,
    rejection_reason: str | None = None,
) -> ProductOrder:
    target = parse_decision(decision)
    if target == OrderStatus.REJECTED and not str(rejection_reason or "").strip():
        raise ValidationError("Rejection reason is required when rejecting an order", field="rejection_reason")
    if rejection_reason is not None and len(rejection_reason) > REJECTION_REASON_MAX_LEN:
        raise ValidationError(
            f"Rejection reason must be at most {REJECTION_REASON_MAX_LEN} characters",
            field="rejection_reason",
        )

    try:
        order = (
            db.query(ProductOrder)
            .filter(ProductOrder.id == order_id)
            .with_for_update()
            .populate_existing()
            .one_or_none()
        )
        if not order:
            raise NotFound("Order", order_id)
        if order.status != OrderStatus.PENDING:
            logger.warning(
                "Rejected transition order_id=%s from=%s to=%s", order_id, order.status.value, target.value
            )
            raise InvalidStateTransition(current=order.status.value, requested=target.value)

        order.status = target
        order.decided_at = datetime.now(timezone.utc)
        order.decided_by_id = ctx.user_id
        if target == OrderStatus.REJECTED:
            # Stored verbatim for the reseller to read.
            order.rejection_reason = rejection_reason
        else:
            db.add(
                UserProduct(
                    user_id=order.reseller_id,
                    product_id=order.product_id,
                    order_id=order.id,
                    msisdn=order.sim_number if order.provision_method == ProvisionMethod.SELF else None,
                )
            )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(order)
    logger.info("Order decided id=%s status=%s admin_id=%s", order.id, order.status.value, ctx.user_id)
    return order


@requires_role(UserRole.ADMIN, UserRole.RESELLER)
def list_orders(db: Session, ctx: RequestContext, *, status=None) -> list[ProductOrder]:
    query = db.query(ProductOrder)
    if not ctx.is_admin:
        query = query.filter(ProductOrder.reseller_id == ctx.user_id)
    if status is not None:
        raw = str(getattr(status, "value", status)).strip().lower()
        members = {member.value: member for member in OrderStatus}
        if raw not in members:
            raise ValidationError("Unknown order status", field="status")
        query = query.filter(ProductOrder.status == members[raw])
    return query.order_by(ProductOrder.id.desc()).all()


@requires_role(UserRole.ADMIN, UserRole.RESELLER)
def get_order(db: Session, ctx: RequestContext, order_id: int) -> ProductOrder:
    order = db.get(ProductOrder, order_id)
    if not order:
        raise NotFound("Order", order_id)
    if not ctx.is_admin and order.reseller_id != ctx.user_id:
        raise PermissionDenied("Order belongs to another reseller")
    return order
