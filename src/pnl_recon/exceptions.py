"""Custom exceptions for closed-PnL reconciliation."""

from typing import Any, Dict, List, Optional


class ReconError(Exception):
    """
    Base exception for reconciliation errors.

    Provides structured error information for debugging and reporting.
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[Dict[str, Any]]] = None,
        field: Optional[str] = None,
        value: Optional[Any] = None,
    ):
        """
        Initialize ReconError with detailed error information.

        Args:
            message: Human-readable error message
            errors: List of detailed error dictionaries (e.g., from Pydantic)
            field: Specific field that failed
            value: The value that failed
        """
        super().__init__(message)
        self.errors = errors or []
        self.field = field
        self.value = value

    def __str__(self) -> str:
        """Return detailed error message."""
        parts = [str(self.args[0]) if self.args else "Reconciliation error"]

        if self.field:
            parts.append(f"Field: {self.field}")

        if self.value is not None:
            parts.append(f"Value: {self.value}")

        if self.errors:
            parts.append(f"Errors: {self.errors}")

        return " | ".join(parts)


class MalformedCandidateError(ReconError):
    """Raised when a closed-PnL record cannot be parsed and the policy is to fail."""

    def __init__(
        self,
        message: str,
        order_id: Optional[str] = None,
        index: Optional[int] = None,
        **kwargs
    ):
        """
        Initialize malformed candidate error.

        Args:
            message: Error message
            order_id: Exchange order id of the offending record, if readable
            index: Position of the record in the upstream list
            **kwargs: Additional arguments passed to ReconError
        """
        super().__init__(message, **kwargs)
        self.order_id = order_id
        self.index = index

    def __str__(self) -> str:
        base_msg = super().__str__()

        parts = [base_msg]
        if self.order_id:
            parts.append(f"Order: {self.order_id}")
        if self.index is not None:
            parts.append(f"Index: {self.index}")

        return " | ".join(parts)


class ExchangeRequestError(ReconError):
    """A single closed-PnL request to the exchange failed."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        ret_code: Optional[int] = None,
        ret_msg: Optional[str] = None,
        **kwargs
    ):
        """
        Initialize exchange request error.

        Args:
            message: Error message
            status_code: HTTP status code, when a response was received
            ret_code: Application-level return code from the exchange
            ret_msg: Application-level message from the exchange
            **kwargs: Additional arguments passed to ReconError
        """
        super().__init__(message, **kwargs)
        self.status_code = status_code
        self.ret_code = ret_code
        self.ret_msg = ret_msg

    def __str__(self) -> str:
        base_msg = super().__str__()

        parts = [base_msg]
        if self.status_code is not None:
            parts.append(f"HTTP: {self.status_code}")
        if self.ret_code is not None:
            parts.append(f"retCode: {self.ret_code}")
        if self.ret_msg:
            parts.append(f"retMsg: {self.ret_msg}")

        return " | ".join(parts)


class ExchangeNetworkError(ExchangeRequestError):
    """Transport failure (connection refused, timeout, DNS)."""


class ExchangeHTTPError(ExchangeRequestError):
    """Exchange answered with a non-success HTTP status."""


class ExchangeAPIError(ExchangeRequestError):
    """Exchange answered 2xx but with a non-zero retCode or an unreadable body."""


class ReconciliationFetchError(ReconError):
    """All fetch attempts failed; reconciliation for the trade is deferred."""

    def __init__(
        self,
        message: str,
        attempts: int = 0,
        last_error: Optional[BaseException] = None,
        **kwargs
    ):
        """
        Initialize fetch exhaustion error.

        Args:
            message: Error message
            attempts: Number of attempts made before giving up
            last_error: The error raised by the final attempt
            **kwargs: Additional arguments passed to ReconError
        """
        super().__init__(message, **kwargs)
        self.attempts = attempts
        self.last_error = last_error

    def __str__(self) -> str:
        base_msg = super().__str__()

        parts = [base_msg, f"Attempts: {self.attempts}"]
        if self.last_error is not None:
            parts.append(f"Last error: {self.last_error}")

        return " | ".join(parts)
