from stockledger.routers.adjustments import router as adjustments_router
from stockledger.routers.audit_logs import router as audit_router
from stockledger.routers.channel import router as channel_router
from stockledger.routers.health import router as health_router
from stockledger.routers.inventory import router as inventory_router
from stockledger.routers.movements import router as movements_router
from stockledger.routers.products import router as products_router
from stockledger.routers.snapshots import router as snapshots_router
from stockledger.routers.stocktakes import router as stocktakes_router
from stockledger.routers.stores import router as stores_router
from stockledger.routers.transactions import router as transactions_router

__all__ = [
    "adjustments_router",
    "audit_router",
    "channel_router",
    "health_router",
    "inventory_router",
    "movements_router",
    "products_router",
    "snapshots_router",
    "stocktakes_router",
    "stores_router",
    "transactions_router",
]
