import logging

from fastapi import APIRouter, Depends, HTTPException

from advisor_desk.api.v1.schemas import (
    BookingSchema,
    MessageRequestSchema,
    ToolCallSchema,
    ToolResultSchema,
    TurnResponseSchema,
)
from advisor_desk.application.ports.booking_ledger import BookingLedgerPort
from advisor_desk.application.use_cases.handle_turn import ConversationOrchestrator
from advisor_desk.application.utils.booking_code import validate_booking_code
from advisor_desk.wiring.dependencies import get_booking_ledger, get_orchestrator

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/sessions/{session_id}/messages", response_model=TurnResponseSchema)
def post_message(
    session_id: str,
    req: MessageRequestSchema,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
):
    try:
        result = orchestrator.handle_turn(session_id, req.text)
    except Exception as e:
        logger.exception("Turn handling failed", extra={"session_id": session_id, "reason": type(e).__name__})
        raise HTTPException(status_code=500, detail="Internal error")

    return TurnResponseSchema(
        session_id=result.session_id,
        response=result.response,
        state=result.state,
        intent=result.intent,
        slots=result.slots,
        tool_calls=[ToolCallSchema(name=c.name, params=c.params) for c in result.tool_calls],
        tool_results=[
            ToolResultSchema(name=r.name, success=r.success, data=r.data, error=r.error, error_kind=r.error_kind)
            for r in result.tool_results
        ],
    )


@router.get("/bookings/{code}", response_model=BookingSchema)
def get_booking(code: str, ledger: BookingLedgerPort = Depends(get_booking_ledger)):
    normalized = code.strip().upper()
    if not validate_booking_code(normalized):
        raise HTTPException(status_code=400, detail="Invalid booking code format")
    booking = ledger.get_booking(normalized)
    if booking is None:
        raise HTTPException(status_code=404, detail="Booking not found")

    return BookingSchema(
        code=booking.code,
        topic=booking.topic,
        slot_start=booking.slot_start.isoformat(),
        slot_end=booking.slot_end.isoformat(),
        status=booking.status.value,
        is_waitlist=booking.is_waitlist,
        external_event_ref=booking.external_event_ref,
    )
