from fastapi import APIRouter, Depends

from stockledger.core.identity import Operator
from stockledger.dependencies import get_session_factory, require_writer
from stockledger.schemas.movement import InboundCreate, OutboundCreate
from stockledger.schemas.transaction import TransactionRead
from stockledger.services.ledger_service import post_inbound, post_outbound, run_in_transaction

router = APIRouter(prefix="/movements", tags=["Movements"])


@router.post("/inbound", response_model=TransactionRead, status_code=201)
def inbound(
    payload: InboundCreate,
    session_factory=Depends(get_session_factory),
    operator: Operator = Depends(require_writer),
):
    return run_in_transaction(session_factory, post_inbound, payload, operator)


@router.post("/outbound", response_model=TransactionRead, status_code=201)
def outbound(
    payload: OutboundCreate,
    session_factory=Depends(get_session_factory),
    operator: Operator = Depends(require_writer),
):
    return run_in_transaction(session_factory, post_outbound, payload, operator)
