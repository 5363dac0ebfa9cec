from .tenancy import Branch, InventoryLocation, Chair
from .auth import User
from .customers import Customer
from .catalog import ServiceCategory, Service, Package, Product
from .sales import Bill, BillItem, BillItemEmployee, Payment
from .inventory import Inventory, InventoryTransaction, StockTransfer, StockTransferItem
from .cash import CashSource, BankDeposit, Expense
from .documents import DocumentSequence
from .settings import SystemSetting

__all__ = [
    'Branch', 'InventoryLocation', 'Chair',
    'User',
    'Customer',
    'ServiceCategory', 'Service', 'Package', 'Product',
    'Bill', 'BillItem', 'BillItemEmployee', 'Payment',
    'Inventory', 'InventoryTransaction', 'StockTransfer', 'StockTransferItem',
    'CashSource', 'BankDeposit', 'Expense',
    'DocumentSequence',
    'SystemSetting',
]
