import logging

from sqlalchemy.orm import Session

from portal.core.authz import RequestContext, requires_role
from portal.core.errors import NotFound, PermissionDenied, ValidationError
from portal.models import ApiSetting, Product, SubscriptionStatus, User, UserProduct, UserProductEndpoint, UserRole
from portal.services.clients import parse_subscription_status

logger = logging.getLogger(__name__)

ACCOUNT_FIELDS = ("username", "password", "sim_iccid", "msisdn")


def _get_for(db: Session, ctx: RequestContext, user_product_id: int) -> UserProduct:
    user_product = db.get(UserProduct, user_product_id)
    if not user_product:
        raise NotFound("User product", user_product_id)
    if not ctx.is_admin and user_product.user_id != ctx.user_id:
        raise PermissionDenied("User product belongs to another reseller")
    return user_product


@requires_role(UserRole.ADMIN, UserRole.RESELLER)
def list_user_products(db: Session, ctx: RequestContext, *, user_id: int | None = None) -> list[UserProduct]:
    if not ctx.is_admin:
        user_id = ctx.user_id
    query = db.query(UserProduct)
    if user_id is not None:
        query = query.filter(UserProduct.user_id == user_id)
    return query.order_by(UserProduct.id.desc()).all()


@requires_role(UserRole.ADMIN, UserRole.RESELLER)
def get_user_product(db: Session, ctx: RequestContext, user_product_id: int) -> UserProduct:
    return _get_for(db, ctx, user_product_id)


@requires_role(UserRole.ADMIN)
def assign_user_product(db: Session, ctx: RequestContext, *, user_id: int, product_id: int, **account) -> UserProduct:
    if not db.get(User, user_id):
        raise NotFound("User", user_id)
    if not db.get(Product, product_id):
        raise NotFound("Product", product_id)
    user_product = UserProduct(user_id=user_id, product_id=product_id)
    for key in ACCOUNT_FIELDS:
        if key in account:
            setattr(user_product, key, str(account[key] or "").strip() or None)
    db.add(user_product)
    db.commit()
    db.refresh(user_product)
    logger.info("User product assigned id=%s user_id=%s product_id=%s", user_product.id, user_id, product_id)
    return user_product


@requires_role(UserRole.ADMIN)
def update_user_product(db: Session, ctx: RequestContext, user_product_id: int, **changes) -> UserProduct:
    user_product = _get_for(db, ctx, user_product_id)
    # Suspension and cancellation live here, not on the order.
    if changes.get("status") is not None:
        status = parse_subscription_status(changes["status"])
        if status != user_product.status:
            logger.info(
                "User product status id=%s %s->%s admin_id=%s",
                user_product.id,
                user_product.status.value,
                status.value,
                ctx.user_id,
            )
        user_product.status = status
    for key in ACCOUNT_FIELDS:
        if key in changes:
            setattr(user_product, key, str(changes[key] or "").strip() or None)
    db.commit()
    db.refresh(user_product)
    return user_product


@requires_role(UserRole.ADMIN)
def delete_user_product(db: Session, ctx: RequestContext, user_product_id: int) -> None:
    user_product = _get_for(db, ctx, user_product_id)
    if user_product.status == SubscriptionStatus.ACTIVE:
        raise ValidationError(
            "User product is still active; suspend or cancel it before deleting",
            field="user_product_id",
        )
    owner_id = user_product.user_id
    db.delete(user_product)
    db.commit()
    logger.info("User product deleted id=%s user_id=%s", user_product_id, owner_id)


@requires_role(UserRole.ADMIN)
def add_endpoint(
    db: Session,
    ctx: RequestContext,
    user_product_id: int,
    *,
    api_setting_id: int,
    username: str | None = None,
    password: str | None = None,
    custom_parameters: dict | None = None,
    headers: dict | None = None,
) -> UserProductEndpoint:
    user_product = _get_for(db, ctx, user_product_id)
    if not db.get(ApiSetting, api_setting_id):
        raise NotFound("API setting", api_setting_id)
    for name, value in (("custom_parameters", custom_parameters), ("headers", headers)):
        if value is not None and not isinstance(value, dict):
            raise ValidationError(f"{name} must be an object", field=name)
    endpoint = UserProductEndpoint(
        user_product_id=user_product.id,
        api_setting_id=api_setting_id,
        username=username,
        password=password,
        custom_parameters=custom_parameters or {},
        headers=headers or {},
    )
    db.add(endpoint)
    db.commit()
    db.refresh(endpoint)
    return endpoint


@requires_role(UserRole.ADMIN)
def delete_endpoint(db: Session, ctx: RequestContext, endpoint_id: int) -> None:
    endpoint = db.get(UserProductEndpoint, endpoint_id)
    if not endpoint:
        raise NotFound("Endpoint", endpoint_id)
    db.delete(endpoint)
    db.commit()
