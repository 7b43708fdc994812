from .catalog import Category, Supplier, Product
from .people import Employee, Customer
from .billing import Bill, BillItem, BillPayment
from .ledger import CustomerLedgerEntry
from .returns import Return

__all__ = [
    'Category', 'Supplier', 'Product',
    'Employee', 'Customer',
    'Bill', 'BillItem', 'BillPayment',
    'CustomerLedgerEntry',
    'Return',
]
