"""Exception hierarchy shared by the services and the web API."""

from typing import Any, Dict, Optional


class RebalancerException(Exception):
    """Base exception for the rebalancer application."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
        request_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.request_id = request_id

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, **self.details}


class ValidationException(RebalancerException):
    """Exception for validation errors."""

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: Optional[Dict[str, str]] = None,
        request_id: Optional[str] = None,
    ):
        super().__init__(
            message=message,
            status_code=422,
            details={"field_errors": field_errors or {}},
            request_id=request_id,
        )


class ConfigurationError(RebalancerException):
    """Exception for configuration errors."""

    def __init__(self, setting: str, message: str, request_id: Optional[str] = None):
        super().__init__(
            message=f"Configuration error for '{setting}': {message}",
            status_code=500,
            details={"setting": setting},
            request_id=request_id,
        )


class PriceLookupError(RebalancerException):
    """Raised when the external price source cannot be queried."""

    def __init__(self, source: str, message: str, request_id: Optional[str] = None):
        super().__init__(
            message=f"{source} price lookup failed: {message}",
            status_code=503,
            details={"source": source},
            request_id=request_id,
        )


class RebalanceInProgressError(RebalancerException):
    """Raised when a rebalance is requested while another one is running."""

    def __init__(self, request_id: Optional[str] = None):
        super().__init__(
            message="A rebalance is already in progress",
            status_code=409,
            request_id=request_id,
        )


class RebalanceFailedError(RebalancerException):
    """Raised when a rebalance run aborts; the run's transaction is rolled back."""

    def __init__(self, error: str, request_id: Optional[str] = None):
        super().__init__(
            message="Cron job failed.",
            status_code=500,
            details={"error": error},
            request_id=request_id,
        )
