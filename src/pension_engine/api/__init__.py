"""Request and response handling around the calculation engine."""

from __future__ import annotations

from .boundary import BoundaryResponse, handle_calculation_request
from .schema import CalculationRequestBody, CalculationResponseBody, ErrorBody
from .translator import MalformedRequest, parse_request

__all__ = [
    "BoundaryResponse",
    "CalculationRequestBody",
    "CalculationResponseBody",
    "ErrorBody",
    "MalformedRequest",
    "handle_calculation_request",
    "parse_request",
]
