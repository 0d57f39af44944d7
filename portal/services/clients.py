import logging

from sqlalchemy.orm import Session

from portal.core.authz import RequestContext, requires_role
from portal.core.errors import NotFound, PermissionDenied, ValidationError
from portal.models import Client, ClientProduct, SubscriptionStatus, User, UserRole

logger = logging.getLogger(__name__)


def _clean(value: str | None) -> str | None:
    text = str(value or "").strip()
    return text or None


def parse_subscription_status(value) -> SubscriptionStatus:
    raw = str(getattr(value, "value", value) or "").strip().lower()
    for member in SubscriptionStatus:
        if raw == member.value:
            return member
    raise ValidationError("Status must be one of active, suspended, cancelled", field="status")


def get_client_for(db: Session, ctx: RequestContext, client_id: int) -> Client:
    client = db.get(Client, client_id)
    if not client:
        raise NotFound("Client", client_id)
    if not ctx.is_admin and client.reseller_id != ctx.user_id:
        raise PermissionDenied("Client belongs to another reseller")
    return client


@requires_role(UserRole.ADMIN, UserRole.RESELLER)
def create_client(
    db: Session,
    ctx: RequestContext,
    *,
    name: str,
    email: str | None = None,
    phone: str | None = None,
    address: str | None = None,
    reseller_id: int | None = None,
) -> Client:
    name = _clean(name)
    if not name:
        raise ValidationError("Client name is required", field="name")

    if ctx.is_admin:
        if reseller_id is None:
            raise ValidationError("reseller_id is required", field="reseller_id")
        owner = db.get(User, reseller_id)
        if not owner:
            raise NotFound("User", reseller_id)
        if owner.role != UserRole.RESELLER:
            raise ValidationError("Clients can only be assigned to resellers", field="reseller_id")
    else:
        # Resellers always own what they create.
        reseller_id = ctx.user_id

    client = Client(
        name=name,
        email=_clean(email),
        phone=_clean(phone),
        address=_clean(address),
        reseller_id=reseller_id,
    )
    db.add(client)
    db.commit()
    db.refresh(client)
    logger.info("Client created id=%s reseller_id=%s", client.id, reseller_id)
    return client


@requires_role(UserRole.ADMIN, UserRole.RESELLER)
def list_clients(db: Session, ctx: RequestContext) -> list[Client]:
    query = db.query(Client)
    if not ctx.is_admin:
        query = query.filter(Client.reseller_id == ctx.user_id)
    return query.order_by(Client.id.desc()).all()


@requires_role(UserRole.ADMIN, UserRole.RESELLER)
def list_client_products(db: Session, ctx: RequestContext, client_id: int) -> list[ClientProduct]:
    client = get_client_for(db, ctx, client_id)
    return (
        db.query(ClientProduct)
        .filter(ClientProduct.client_id == client.id)
        .order_by(ClientProduct.id.desc())
        .all()
    )


@requires_role(UserRole.ADMIN)
def update_client_product_status(
    db: Session, ctx: RequestContext, client_id: int, client_product_id: int, status
) -> ClientProduct:
    subscription = db.get(ClientProduct, client_product_id)
    if not subscription or subscription.client_id != client_id:
        raise NotFound("Client product", client_product_id)
    subscription.status = parse_subscription_status(status)
    db.commit()
    db.refresh(subscription)
    logger.info(
        "Client product status id=%s client_id=%s status=%s admin_id=%s",
        subscription.id,
        client_id,
        subscription.status.value,
        ctx.user_id,
    )
    return subscription
