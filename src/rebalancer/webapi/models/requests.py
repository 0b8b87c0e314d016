"""Request models for the rebalancer API."""

from typing import List

from pydantic import BaseModel, Field, field_validator


class SignalCreateRequest(BaseModel):
    """Request to queue a BUY or SELL signal."""

    type: str = Field(..., description="BUY or SELL", examples=["BUY"])
    tickers: List[str] = Field(
        ..., min_length=1, description="Tickers to act on", examples=[["RELIANCE"]]
    )

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in ("BUY", "SELL"):
            raise ValueError("Signal type must be BUY or SELL")
        return v
