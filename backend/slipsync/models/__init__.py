from .tenancy import Merchant, Store, generate_id
from .auth import User, Role, StoreAccessGrant
from .catalog import Category, Supplier, Product, ProductVariant, Inventory
from .sales import Customer, Order, OrderItem, Invoice
from .printing import PrintDevice, PrintJob
from .security import SecurityEvent

__all__ = [
    'Merchant', 'Store', 'generate_id',
    'User', 'Role', 'StoreAccessGrant',
    'Category', 'Supplier', 'Product', 'ProductVariant', 'Inventory',
    'Customer', 'Order', 'OrderItem', 'Invoice',
    'PrintDevice', 'PrintJob',
    'SecurityEvent',
]
