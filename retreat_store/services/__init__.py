from retreat_store.services.auth_service import AuthService
from retreat_store.services.transaction_service import TransactionService
from retreat_store.services.stock_service import StockService
from retreat_store.services.inventory_service import InventoryService
from retreat_store.services.money_code_service import MoneyCodeService
from retreat_store.services.purchase_service import PurchaseService
from retreat_store.services.donation_service import DonationService
from retreat_store.services.ranking_service import RankingService, calculate_donation_score
from retreat_store.services.user_service import UserService
from retreat_store.services.product_service import ProductService
from retreat_store.services.seed_service import SeedService

__all__ = [
    "AuthService",
    "TransactionService",
    "StockService",
    "InventoryService",
    "MoneyCodeService",
    "PurchaseService",
    "DonationService",
    "RankingService",
    "calculate_donation_score",
    "UserService",
    "ProductService",
    "SeedService",
]
