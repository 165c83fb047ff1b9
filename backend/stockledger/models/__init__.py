from .catalog import Product, Warehouse, ProductCategory, UnitOfMeasure
from .documents import (
    DocumentStatus,
    DocumentType,
    DocumentLine,
    AdjustmentLine,
    Document,
    Receipt,
    Delivery,
    InternalTransfer,
    StockAdjustment,
)
from .stock import StockLocation, StockMovement, MovementType
from .storage import StorageEntry

__all__ = [
    'Product', 'Warehouse', 'ProductCategory', 'UnitOfMeasure',
    'DocumentStatus', 'DocumentType', 'DocumentLine', 'AdjustmentLine',
    'Document', 'Receipt', 'Delivery', 'InternalTransfer', 'StockAdjustment',
    'StockLocation', 'StockMovement', 'MovementType',
    'StorageEntry',
]
