"""Portfolio viewing endpoints."""

from fastapi import APIRouter, Depends, Query, Request

from ...config.logging import get_logger
from ...services import PortfolioService
from ..models.responses import (
    HoldingData,
    PortfolioSummaryData,
    PortfolioSummaryResponse,
    SnapshotData,
    SnapshotListResponse,
    TradeData,
    TradeListResponse,
)
from ..security import verify_cron_secret

logger = get_logger(__name__)

router = APIRouter(prefix="/portfolio", dependencies=[Depends(verify_cron_secret)])


def get_portfolio_service() -> PortfolioService:
    """Dependency to get portfolio service instance."""
    return PortfolioService()


@router.get(
    "",
    response_model=PortfolioSummaryResponse,
    summary="Get Portfolio Summary",
    description="Portfolio aggregates, win rate and current holdings",
)
def get_portfolio_summary(
    request: Request,
    service: PortfolioService = Depends(get_portfolio_service),
) -> PortfolioSummaryResponse:
    request_id = getattr(request.state, "request_id", None)
    logger.info("Portfolio summary requested", request_id=request_id)

    summary = service.get_summary()
    data = PortfolioSummaryData(
        name=summary.name,
        total_investment=float(summary.total_investment),
        current_value=float(summary.current_value),
        unrealized_pl=float(summary.unrealized_pl),
        realized_pl=float(summary.realized_pl),
        total_trades=summary.total_trades,
        winning_trades=summary.winning_trades,
        win_rate=summary.win_rate,
        last_rebalanced=summary.last_rebalanced,
        holdings=[
            HoldingData(
                ticker=h.ticker,
                name=h.name,
                sector=h.sector,
                quantity=h.quantity,
                purchase_price=float(h.purchase_price),
                cost_basis=float(h.cost_basis),
                purchase_date=h.purchase_date,
            )
            for h in summary.holdings
        ],
    )

    return PortfolioSummaryResponse(data=data, request_id=request_id)


@router.get(
    "/trades",
    response_model=TradeListResponse,
    summary="Get Trade Log",
    description="Most recent trades, newest first",
)
def get_trades(
    request: Request,
    limit: int = Query(50, ge=1, le=1000, description="Maximum number of trades"),
    service: PortfolioService = Depends(get_portfolio_service),
) -> TradeListResponse:
    request_id = getattr(request.state, "request_id", None)

    trades = [
        TradeData(
            date=t.date,
            type=t.type,
            ticker=t.ticker,
            quantity=t.quantity,
            price=float(t.price),
            realized_pl=float(t.realized_pl) if t.realized_pl is not None else None,
        )
        for t in service.get_trades(limit)
    ]

    return TradeListResponse(data=trades, request_id=request_id)


@router.get(
    "/snapshots",
    response_model=SnapshotListResponse,
    summary="Get Valuation History",
    description="Portfolio value after each rebalance, oldest first",
)
def get_snapshots(
    request: Request,
    limit: int = Query(365, ge=1, le=5000, description="Maximum number of points"),
    service: PortfolioService = Depends(get_portfolio_service),
) -> SnapshotListResponse:
    request_id = getattr(request.state, "request_id", None)

    snapshots = [
        SnapshotData(date=s.date, value=float(s.value))
        for s in service.get_snapshots(limit)
    ]

    return SnapshotListResponse(data=snapshots, request_id=request_id)
