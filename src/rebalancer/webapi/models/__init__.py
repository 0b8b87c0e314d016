"""API Models package for request/response schemas."""

from .requests import SignalCreateRequest
from .responses import (
    BaseResponse,
    ErrorResponse,
    HealthResponse,
    HealthStatus,
    MessageResponse,
    PortfolioSummaryResponse,
    RebalanceResponse,
    SignalListResponse,
    SignalResponse,
    SnapshotListResponse,
    SuccessResponse,
    TradeListResponse,
)

__all__ = [
    # Response models
    "BaseResponse",
    "ErrorResponse",
    "HealthResponse",
    "HealthStatus",
    "MessageResponse",
    "PortfolioSummaryResponse",
    "RebalanceResponse",
    "SignalListResponse",
    "SignalResponse",
    "SnapshotListResponse",
    "SuccessResponse",
    "TradeListResponse",
    # Request models
    "SignalCreateRequest",
]
