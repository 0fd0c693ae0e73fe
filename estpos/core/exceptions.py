"""
Custom exception hierarchy for the EST POS adapter.

All application-level exceptions inherit from AppException so they can be
caught by a single global handler. A declined payment is not an exception:
it comes back as a normal result with status="declined".
"""


class AppException(Exception):
    """Base for all app exceptions."""

    def __init__(
        self,
        status_code: int,
        error_code: str,
        message: str,
        details: dict | None = None,
    ):
        self.status_code = status_code
        self.error_code = error_code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class UnsupportedTransactionType(AppException):
    """Raised by prepare() when the order names an unknown transaction."""

    def __init__(self, message: str = "Unsupported transaction type!", details: dict | None = None):
        super().__init__(
            status_code=400,
            error_code="UNSUPPORTED_TRANSACTION_TYPE",
            message=message,
            details=details,
        )


class UnsupportedPaymentModel(AppException):
    """Raised when the account model is not regular, 3d or 3d_pay."""

    def __init__(self, message: str = "Unsupported payment model!", details: dict | None = None):
        super().__init__(
            status_code=400,
            error_code="UNSUPPORTED_PAYMENT_MODEL",
            message=message,
            details=details,
        )


class GatewayTransportError(AppException):
    """Raised when the bank endpoint cannot be reached or answers non-2xx."""

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        error_code: str = "GATEWAY_TRANSPORT_ERROR",
    ):
        super().__init__(
            status_code=502,
            error_code=error_code,
            message=message,
            details=details,
        )


class ResponseParseError(GatewayTransportError):
    """Raised when the bank reply is not well-formed XML."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(
            message=message,
            details=details,
            error_code="GATEWAY_RESPONSE_PARSE_ERROR",
        )


class InvalidCallbackError(AppException):
    """Raised when a bank callback lacks the fields needed to rebuild the order."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(
            status_code=400,
            error_code="INVALID_CALLBACK",
            message=message,
            details=details,
        )
