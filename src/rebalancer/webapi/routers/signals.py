"""Signal queue endpoints."""

from dataclasses import asdict

from fastapi import APIRouter, Depends, Request

from ...config.logging import get_logger
from ...services import SignalService
from ..models.requests import SignalCreateRequest
from ..models.responses import SignalData, SignalListResponse, SignalResponse
from ..security import verify_cron_secret

logger = get_logger(__name__)

router = APIRouter(prefix="/signals", dependencies=[Depends(verify_cron_secret)])


def get_signal_service() -> SignalService:
    """Dependency to get signal service instance."""
    return SignalService()


@router.post(
    "",
    response_model=SignalResponse,
    status_code=201,
    summary="Queue Signal",
    description="Queue a BUY or SELL signal for the next rebalance",
)
def create_signal(
    request: Request,
    signal_request: SignalCreateRequest,
    service: SignalService = Depends(get_signal_service),
) -> SignalResponse:
    request_id = getattr(request.state, "request_id", None)

    info = service.submit_signal(signal_request.type, signal_request.tickers)

    return SignalResponse(
        data=SignalData(**asdict(info)),
        message="Signal queued",
        request_id=request_id,
    )


@router.get(
    "/pending",
    response_model=SignalListResponse,
    summary="List Pending Signals",
    description="Signals waiting for the next rebalance, oldest first",
)
def list_pending_signals(
    request: Request,
    service: SignalService = Depends(get_signal_service),
) -> SignalListResponse:
    request_id = getattr(request.state, "request_id", None)

    signals = [SignalData(**asdict(info)) for info in service.get_pending_signals()]

    return SignalListResponse(data=signals, request_id=request_id)
