from campus_market.models.user import User
from campus_market.models.seller import SellerProfile
from campus_market.models.allowed_domain import AllowedDomain
from campus_market.models.category import Category
from campus_market.models.product import Product, ProductVariant
from campus_market.models.commission import Commission
from campus_market.models.order import Order, OrderItem
from campus_market.models.wallet import Wallet, WalletTransaction
from campus_market.models.withdrawal import Withdrawal
from campus_market.models.settings import PlatformSettings
from campus_market.models.seller_review import SellerReview

__all__ = [
    "User",
    "SellerProfile",
    "AllowedDomain",
    "Category",
    "Product",
    "ProductVariant",
    "Commission",
    "Order",
    "OrderItem",
    "Wallet",
    "WalletTransaction",
    "Withdrawal",
    "PlatformSettings",
    "SellerReview",
]
