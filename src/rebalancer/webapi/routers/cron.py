"""Cron-triggered rebalance endpoint."""

from fastapi import APIRouter, Depends, Request

from ...config.logging import get_logger
from ...services import RebalanceService
from ..models.responses import RebalanceResponse, RebalanceResultData
from ..security import verify_cron_secret

logger = get_logger(__name__)

router = APIRouter()


def get_rebalance_service() -> RebalanceService:
    """Dependency to get rebalance service instance."""
    return RebalanceService()


@router.post(
    "/cron/trigger-rebalance",
    response_model=RebalanceResponse,
    summary="Trigger Rebalance",
    description="Consume pending signals and rebalance the portfolio",
)
def trigger_rebalance(
    request: Request,
    token: str = Depends(verify_cron_secret),
    service: RebalanceService = Depends(get_rebalance_service),
) -> RebalanceResponse:
    """
    Run one rebalance.

    Returns 409 if a run is already in progress and 500 if the run failed,
    in which case nothing was committed and the signals remain pending.
    """
    request_id = getattr(request.state, "request_id", None)

    logger.info("Cron rebalance triggered", request_id=request_id)
    outcome = service.trigger_rebalance(actor="cron")

    return RebalanceResponse(
        data=RebalanceResultData(**outcome.to_dict()),
        message=outcome.message,
        request_id=request_id,
    )
