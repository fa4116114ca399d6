from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from stockledger.config import get_settings
from stockledger.dependencies import get_db, get_session_factory, require_auth
from stockledger.schemas.channel import ChannelMovement, ChannelSelect, SelectionRead
from stockledger.schemas.transaction import TransactionRead
from stockledger.services import channel_service
from stockledger.services.ledger_service import run_in_transaction
from stockledger.services.messaging_service import notify_channel

router = APIRouter(prefix="/channel", tags=["Channel"])


@router.post("/{channel_id}/select", response_model=SelectionRead)
def select_product(
    channel_id: str,
    payload: ChannelSelect,
    db: Session = Depends(get_db),
    _auth=Depends(require_auth),
):
    selection = channel_service.select_product(
        db,
        channel_id,
        payload.user_id,
        sku=payload.sku,
        barcode=payload.barcode,
    )
    return SelectionRead(
        store_id=selection.store_id,
        product_id=selection.product_id,
        sku=selection.sku,
        name=selection.name,
    )


@router.post("/{channel_id}/movement", response_model=TransactionRead, status_code=201)
def channel_movement(
    channel_id: str,
    payload: ChannelMovement,
    background_tasks: BackgroundTasks,
    session_factory=Depends(get_session_factory),
    _auth=Depends(require_auth),
):
    entry = run_in_transaction(
        session_factory,
        channel_service.channel_movement,
        channel_id,
        payload.user_id,
        payload.direction,
        payload.quantity_case,
        payload.quantity_unit,
    )
    selection = channel_service.get_selection_cache().get((channel_id, payload.user_id))
    if selection is not None and get_settings().CHANNEL_API_URL:
        background_tasks.add_task(notify_channel, channel_service.movement_reply(entry, selection), channel_id)
    return entry
