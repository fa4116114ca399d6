from stockledger.services.snapshot_service import (
    rebuild_snapshots,
    recompute_snapshot,
    retroactive_recompute,
    snapshots_by_date,
)
from stockledger.services.ledger_service import (
    apply_movement,
    cancel_transaction,
    get_balance,
    post_inbound,
    post_outbound,
    run_in_transaction,
)
from stockledger.services.adjustment_service import approve_adjustment, create_adjustment, reject_adjustment
from stockledger.services.stocktake_service import complete_stocktake, create_stocktake

__all__ = [
    "apply_movement",
    "approve_adjustment",
    "cancel_transaction",
    "complete_stocktake",
    "create_adjustment",
    "create_stocktake",
    "get_balance",
    "post_inbound",
    "post_outbound",
    "rebuild_snapshots",
    "recompute_snapshot",
    "reject_adjustment",
    "retroactive_recompute",
    "run_in_transaction",
    "snapshots_by_date",
]
