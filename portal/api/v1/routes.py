from fastapi import APIRouter
from portal.api.v1.endpoints import (
    admin,
    auth,
    catalog,
    clients,
    orders,
    provisioning,
    transactions,
    user_products,
    users,
)

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(catalog.router, prefix="/catalog", tags=["catalog"])
router.include_router(clients.router, prefix="/clients", tags=["clients"])
router.include_router(orders.router, prefix="/orders", tags=["orders"])
router.include_router(transactions.router, prefix="/transactions", tags=["transactions"])
router.include_router(user_products.router, prefix="/user-products", tags=["user-products"])
router.include_router(provisioning.router, prefix="/provisioning", tags=["provisioning"])
router.include_router(admin.router, prefix="/admin", tags=["admin"])
