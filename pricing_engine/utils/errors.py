"""
HTTP Exceptions
Maps explained pricing failures onto HTTP responses.
Source: https://fastapi.tiangolo.com/tutorial/handling-errors/
"""

from fastapi import HTTPException, status

from pricing_engine.core.enums import PricingErrorKind


class PricingHTTPError(HTTPException):
    """Base for pricing failures surfaced over HTTP.

    The detail is always a ``{kind, message}`` pair so clients can render
    the message directly.
    """

    status_code_for_kind = status.HTTP_400_BAD_REQUEST

    def __init__(self, kind: PricingErrorKind, message: str):
        super().__init__(
            status_code=self.status_code_for_kind,
            detail={"kind": kind.value, "message": message},
        )


class InvalidInputHTTPError(PricingHTTPError):
    """Raised when the calculation request is malformed"""

    status_code_for_kind = status.HTTP_422_UNPROCESSABLE_ENTITY


class NoRuleFoundHTTPError(PricingHTTPError):
    """Raised when no pricing rule covers the combination"""

    status_code_for_kind = status.HTTP_404_NOT_FOUND


class MissingPointRateHTTPError(PricingHTTPError):
    """Raised when a points rule has no valid point rate"""

    status_code_for_kind = status.HTTP_409_CONFLICT


class ReferenceDataUnavailableHTTPError(PricingHTTPError):
    """Raised when the pricing data service cannot be read"""

    status_code_for_kind = status.HTTP_503_SERVICE_UNAVAILABLE


_ERRORS_BY_KIND: dict[PricingErrorKind, type[PricingHTTPError]] = {
    PricingErrorKind.INVALID_INPUT: InvalidInputHTTPError,
    PricingErrorKind.NO_RULE_FOUND: NoRuleFoundHTTPError,
    PricingErrorKind.MISSING_POINT_RATE: MissingPointRateHTTPError,
    PricingErrorKind.REFERENCE_DATA_UNAVAILABLE: ReferenceDataUnavailableHTTPError,
}


def http_error_for(kind: PricingErrorKind, message: str) -> PricingHTTPError:
    """Build the HTTP exception matching an error kind."""
    return _ERRORS_BY_KIND[kind](kind, message)
