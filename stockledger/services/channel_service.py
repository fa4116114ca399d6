"""Chat-channel adapter.

A chat group is bound to one store through ``Store.channel_id``. A user
first selects a product, then posts quantities against it. The selection
lives only in this adapter's TTL cache; dropping it never affects the ledger.
"""

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from stockledger.config import get_settings
from stockledger.core.constants import ROLE_STORE_MANAGER, SOURCE_CHANNEL
from stockledger.core.errors import NO_ACTIVE_SELECTION, BusinessRuleViolation, ValidationError
from stockledger.core.identity import Operator
from stockledger.models.transaction import LedgerTransaction
from stockledger.schemas.movement import InboundCreate, OutboundCreate
from stockledger.services.catalog_service import (
    get_product_by_barcode,
    get_product_by_sku,
    get_store_by_channel,
)
from stockledger.services.ledger_service import post_inbound, post_outbound

logger = logging.getLogger(__name__)

DIRECTION_IN = "in"
DIRECTION_OUT = "out"


@dataclass(frozen=True)
class Selection:
    store_id: int
    product_id: int
    sku: str
    name: str


class SelectionCache:
    def __init__(self, ttl_seconds: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        if ttl_seconds is None:
            ttl_seconds = get_settings().SELECTION_TTL_SECONDS
        self.ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._entries: dict = {}
        self._lock = threading.Lock()

    def put(self, key, selection: Selection) -> None:
        now = self._clock()
        with self._lock:
            self._drop_expired(now)
            self._entries[key] = (selection, now + self.ttl_seconds)

    def get(self, key) -> Optional[Selection]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            selection, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return selection

    def evict(self, key) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def _drop_expired(self, now: float) -> int:
        # Caller holds the lock.
        expired = [key for key, (_, expires_at) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def purge_expired(self) -> int:
        with self._lock:
            return self._drop_expired(self._clock())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


_selection_cache: Optional[SelectionCache] = None


def get_selection_cache() -> SelectionCache:
    global _selection_cache
    if _selection_cache is None:
        _selection_cache = SelectionCache()
    return _selection_cache


def select_product(
    db: Session,
    channel_id: str,
    user_id: str,
    *,
    sku: Optional[str] = None,
    barcode: Optional[str] = None,
    cache: Optional[SelectionCache] = None,
) -> Selection:
    if cache is None:
        cache = get_selection_cache()
    store = get_store_by_channel(db, channel_id)
    if sku:
        product = get_product_by_sku(db, sku)
    elif barcode:
        product = get_product_by_barcode(db, barcode)
    else:
        raise ValidationError("Either sku or barcode is required")
    if not product.is_active:
        raise ValidationError("Product {} is inactive".format(product.sku))

    selection = Selection(store_id=store.id, product_id=product.id, sku=product.sku, name=product.name)
    cache.put((channel_id, user_id), selection)
    logger.info("Channel user selected %s", product.sku, extra={"store_id": store.id, "product_id": product.id})
    return selection


def channel_operator(user_id: str, display_name: Optional[str] = None) -> Operator:
    return Operator(
        operator_id=None,
        name=display_name or "channel:{}".format(user_id),
        role=ROLE_STORE_MANAGER,
        source=SOURCE_CHANNEL,
    )


def channel_movement(
    db: Session,
    channel_id: str,
    user_id: str,
    direction: str,
    quantity_case: int,
    quantity_unit: int,
    *,
    now: Optional[datetime] = None,
    cache: Optional[SelectionCache] = None,
    display_name: Optional[str] = None,
) -> LedgerTransaction:
    if cache is None:
        cache = get_selection_cache()
    store = get_store_by_channel(db, channel_id)
    selection = cache.get((channel_id, user_id))
    if selection is None or selection.store_id != store.id:
        raise BusinessRuleViolation(NO_ACTIVE_SELECTION, "Select a product first")

    operator = channel_operator(user_id, display_name)
    if direction == DIRECTION_IN:
        # No price is given in chat; the running average is used.
        command = InboundCreate(
            store_id=store.id,
            product_id=selection.product_id,
            quantity_case=quantity_case,
            quantity_unit=quantity_unit,
        )
        return post_inbound(db, command, operator, now=now)
    if direction == DIRECTION_OUT:
        command = OutboundCreate(
            store_id=store.id,
            product_id=selection.product_id,
            quantity_case=quantity_case,
            quantity_unit=quantity_unit,
        )
        return post_outbound(db, command, operator, now=now)
    raise ValidationError("direction must be '{}' or '{}'".format(DIRECTION_IN, DIRECTION_OUT))


def movement_reply(entry: LedgerTransaction, selection: Selection) -> str:
    label = "IN" if entry.quantity_case >= 0 and entry.quantity_unit >= 0 else "OUT"
    return "{} {} {}: {} case / {} unit".format(
        label,
        selection.sku,
        selection.name,
        abs(entry.quantity_case),
        abs(entry.quantity_unit),
    )


__all__ = [
    "DIRECTION_IN",
    "DIRECTION_OUT",
    "Selection",
    "SelectionCache",
    "channel_movement",
    "channel_operator",
    "get_selection_cache",
    "movement_reply",
    "select_product",
]
