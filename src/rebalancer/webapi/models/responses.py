"""Response models for the rebalancer API."""

from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_serializer

# Generic type for data responses
T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseResponse(BaseModel):
    """Base response model for all API responses."""

    success: bool = Field(..., description="Whether the request was successful")
    timestamp: datetime = Field(
        default_factory=_utcnow, description="Response timestamp"
    )
    request_id: Optional[str] = Field(
        None, description="Unique request identifier for tracking"
    )

    model_config = ConfigDict(
        use_enum_values=True,
        arbitrary_types_allowed=True,
    )

    @field_serializer("timestamp")
    def serialize_timestamp(self, dt: datetime) -> str:
        """Serialize datetime to ISO format with Z suffix."""
        return dt.astimezone(timezone.utc).replace(tzinfo=None).isoformat() + "Z"


class SuccessResponse(BaseResponse, Generic[T]):
    """Generic success response with typed data."""

    success: bool = Field(True, description="Always true for success responses")
    data: T = Field(..., description="Response data")
    message: Optional[str] = Field(None, description="Optional success message")


class ErrorResponse(BaseResponse):
    """Error response model."""

    success: bool = Field(False, description="Always false for error responses")
    error: Dict[str, Any] = Field(..., description="Error details")


class HealthStatus(BaseModel):
    """Health status model."""

    status: str = Field(..., description="Overall health status: healthy or unhealthy")
    services: Dict[str, Dict[str, Any]] = Field(
        default_factory=dict, description="Individual service statuses"
    )
    uptime_seconds: float = Field(..., description="Application uptime in seconds")
    version: Optional[str] = Field(None, description="Application version")


class HealthResponse(BaseResponse):
    """Health check response."""

    success: bool = Field(True, description="Always true for health responses")
    health: HealthStatus = Field(..., description="Detailed health information")


class TickerErrorData(BaseModel):
    ticker: str = Field(..., description="Ticker that could not be processed")
    message: str = Field(..., description="What went wrong")


class RebalanceReportData(BaseModel):
    """Outcome of a rebalance run."""

    sold_by_stop_loss: List[str] = Field(default_factory=list)
    sold_by_signal: List[str] = Field(default_factory=list)
    bought: List[str] = Field(default_factory=list)
    errors: List[TickerErrorData] = Field(default_factory=list)


class RebalanceResultData(BaseModel):
    message: str = Field(..., description="Run status message")
    report: Optional[RebalanceReportData] = Field(
        None, description="Report, absent when there was nothing to process"
    )
    processed_signals: int = Field(0, description="Number of signals consumed")


class RebalanceResponse(SuccessResponse[RebalanceResultData]):
    """Response model for the rebalance trigger."""

    data: RebalanceResultData = Field(..., description="Rebalance result")


class HoldingData(BaseModel):
    ticker: str
    name: str
    sector: str
    quantity: int
    purchase_price: float
    cost_basis: float
    purchase_date: datetime


class PortfolioSummaryData(BaseModel):
    """Portfolio aggregates and holdings."""

    name: str
    total_investment: float
    current_value: float
    unrealized_pl: float
    realized_pl: float
    total_trades: int
    winning_trades: int
    win_rate: float
    last_rebalanced: Optional[datetime]
    holdings: List[HoldingData]


class PortfolioSummaryResponse(SuccessResponse[PortfolioSummaryData]):
    data: PortfolioSummaryData = Field(..., description="Portfolio summary")


class TradeData(BaseModel):
    date: datetime
    type: str
    ticker: str
    quantity: int
    price: float
    realized_pl: Optional[float] = None


class TradeListResponse(SuccessResponse[List[TradeData]]):
    data: List[TradeData] = Field(..., description="Trades, newest first")


class SnapshotData(BaseModel):
    date: datetime
    value: float


class SnapshotListResponse(SuccessResponse[List[SnapshotData]]):
    data: List[SnapshotData] = Field(..., description="Valuation history, oldest first")


class SignalData(BaseModel):
    id: int
    type: str
    tickers: Any
    status: str
    created_at: datetime
    processed_at: Optional[datetime] = None


class SignalResponse(SuccessResponse[SignalData]):
    data: SignalData = Field(..., description="Queued signal")


class SignalListResponse(SuccessResponse[List[SignalData]]):
    data: List[SignalData] = Field(..., description="Pending signals")


class MessageResponse(SuccessResponse[Dict[str, str]]):
    """Simple message response."""

    data: Dict[str, str] = Field(..., description="Message data")

    @classmethod
    def create(
        cls, message: str, request_id: Optional[str] = None
    ) -> "MessageResponse":
        """Create a simple message response."""
        return cls(
            success=True,
            data={"message": message},
            message=message,
            request_id=request_id,
        )
