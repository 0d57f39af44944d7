from portal.models.user import User, UserRole, PaymentMode
from portal.models.product_category import ProductCategory, MasterCategory
from portal.models.product import Product, ProductStatus
from portal.models.client import Client, ClientProduct, SubscriptionStatus
from portal.models.transaction import Transaction, TransactionType
from portal.models.product_order import ProductOrder, OrderStatus, ProvisionMethod
from portal.models.api_setting import ApiSetting
from portal.models.user_product import UserProduct, UserProductEndpoint
from portal.models.api_log import ApiLog

__all__ = [
    "User",
    "UserRole",
    "PaymentMode",
    "ProductCategory",
    "MasterCategory",
    "Product",
    "ProductStatus",
    "Client",
    "ClientProduct",
    "SubscriptionStatus",
    "Transaction",
    "TransactionType",
    "ProductOrder",
    "OrderStatus",
    "ProvisionMethod",
    "ApiSetting",
    "UserProduct",
    "UserProductEndpoint",
    "ApiLog",
]
