from .catalog import Employee, Brand, Item, ItemSize, SharedItemLink, Promoter
from .ledger import (
    StockTransaction,
    TAKE_OUT,
    RETURN,
    BURN,
    RESTOCK,
    TRANSACTION_TYPES,
    PROMOTER_TRANSACTION_TYPES,
)

__all__ = [
    'Employee', 'Brand', 'Item', 'ItemSize', 'SharedItemLink', 'Promoter',
    'StockTransaction',
    'TAKE_OUT', 'RETURN', 'BURN', 'RESTOCK',
    'TRANSACTION_TYPES', 'PROMOTER_TRANSACTION_TYPES',
]
