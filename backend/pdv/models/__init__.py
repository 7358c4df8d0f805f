from .auth import InternalRole, InternalUser, InternalPermission, InternalSession
from .catalog import Category, Product, StockMovement, Supplier, Client, ProductEntry
from .sales import Sale, SaleItem, PAYMENT_METHODS, SALE_STATUS_COMPLETED, SALE_STATUS_CANCELLED
from .security import SecurityEvent

__all__ = [
    'InternalRole', 'InternalUser', 'InternalPermission', 'InternalSession',
    'Category', 'Product', 'StockMovement', 'Supplier', 'Client', 'ProductEntry',
    'Sale', 'SaleItem', 'PAYMENT_METHODS', 'SALE_STATUS_COMPLETED', 'SALE_STATUS_CANCELLED',
    'SecurityEvent',
]
