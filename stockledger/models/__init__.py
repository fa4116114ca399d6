import importlib

from stockledger.models.adjustment import Adjustment, AdjustmentItem
from stockledger.models.audit_log import AuditLog
from stockledger.models.daily_snapshot import DailySnapshot
from stockledger.models.inventory import InventoryBalance
from stockledger.models.product import Product
from stockledger.models.stocktake import StockTake, StockTakeItem
from stockledger.models.stores import Store
from stockledger.models.transaction import LedgerTransaction


def import_all_models() -> None:
    for module_name in (
        "stockledger.models.adjustment",
        "stockledger.models.audit_log",
        "stockledger.models.daily_snapshot",
        "stockledger.models.inventory",
        "stockledger.models.product",
        "stockledger.models.stocktake",
        "stockledger.models.stores",
        "stockledger.models.transaction",
    ):
        importlib.import_module(module_name)


__all__ = [
    "Adjustment",
    "AdjustmentItem",
    "AuditLog",
    "DailySnapshot",
    "InventoryBalance",
    "LedgerTransaction",
    "Product",
    "StockTake",
    "StockTakeItem",
    "Store",
    "import_all_models",
]
