from decimal import Decimal

TX_INBOUND = "inbound"
TX_OUTBOUND = "outbound"
TX_ADJUSTMENT_IN = "adjustment_in"
TX_ADJUSTMENT_OUT = "adjustment_out"
TX_CONVERSION = "conversion"
TX_STOCKTAKE = "stocktake"
TX_CANCEL = "cancel"

TRANSACTION_TYPES = (
    TX_INBOUND,
    TX_OUTBOUND,
    TX_ADJUSTMENT_IN,
    TX_ADJUSTMENT_OUT,
    TX_CONVERSION,
    TX_STOCKTAKE,
    TX_CANCEL,
)

# Snapshot buckets. Cancelled originals and their cancel entries are excluded.
INBOUND_BUCKET_TYPES = (TX_INBOUND, TX_ADJUSTMENT_IN)
OUTBOUND_BUCKET_TYPES = (TX_OUTBOUND, TX_ADJUSTMENT_OUT)
ADJUSTMENT_BUCKET_TYPES = (TX_STOCKTAKE, TX_CONVERSION)

SOURCE_WEB = "web"
SOURCE_CHANNEL = "channel"
SOURCE_SYSTEM = "system"
TRANSACTION_SOURCES = (SOURCE_WEB, SOURCE_CHANNEL, SOURCE_SYSTEM)

ADJUSTMENT_MAKE_UP_OUTBOUND = "make_up_outbound"
ADJUSTMENT_MAKE_UP_INBOUND = "make_up_inbound"
ADJUSTMENT_CONVERSION = "conversion"
ADJUSTMENT_TYPES = (
    ADJUSTMENT_MAKE_UP_OUTBOUND,
    ADJUSTMENT_MAKE_UP_INBOUND,
    ADJUSTMENT_CONVERSION,
)

ADJUSTMENT_PENDING = "pending"
ADJUSTMENT_APPROVED = "approved"
ADJUSTMENT_REJECTED = "rejected"
ADJUSTMENT_STATUSES = (ADJUSTMENT_PENDING, ADJUSTMENT_APPROVED, ADJUSTMENT_REJECTED)

STOCKTAKE_DRAFT = "draft"
STOCKTAKE_COMPLETED = "completed"

ROLE_ADMIN = "admin"
ROLE_STORE_MANAGER = "store_manager"
ROLE_VIEWER = "viewer"
OPERATOR_ROLES = (ROLE_ADMIN, ROLE_STORE_MANAGER, ROLE_VIEWER)

AUDIT_CREATE = "create"
AUDIT_UPDATE = "update"
AUDIT_DELETE = "delete"

MONEY_PLACES = 4
MONEY_QUANTUM = Decimal(1).scaleb(-MONEY_PLACES)
ZERO = Decimal("0")
