from .auth import User, SessionToken
from .tenancy import Shop, ShopWorker
from .inventory import Product, InventoryItem, Supplier, Purchase, PurchaseItem
from .customers import Customer
from .sales import CartItem, Sale, SaleItem, Payment
from .loans import Loan, LoanInstallment
from .mobile_services import MobileService
from .documents import DocumentSequence, AuditLog

__all__ = [
    'User', 'SessionToken',
    'Shop', 'ShopWorker',
    'Product', 'InventoryItem', 'Supplier', 'Purchase', 'PurchaseItem',
    'Customer',
    'CartItem', 'Sale', 'SaleItem', 'Payment',
    'Loan', 'LoanInstallment',
    'MobileService',
    'DocumentSequence', 'AuditLog',
]
