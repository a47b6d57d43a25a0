"""Outer boundary: one request document in, one status and JSON payload out.

Errors are flattened here and only here. Malformed requests and empty
mutation lists map to 400; every other failure is logged with its precise
cause and reported as a generic 500.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

from pension_engine.domain.errors import EmptyMutationList

from .schema import ErrorBody
from .translator import MalformedRequest, parse_request, to_calculation_request, to_response_body

if TYPE_CHECKING:
    from collections.abc import Mapping

    from pension_engine.domain.engine import CalculationEngine

log = getLogger(__name__)

INVALID_REQUEST_MESSAGE: Final[str] = "Invalid request: mutations are required"
INTERNAL_ERROR_MESSAGE: Final[str] = "Internal server error"


@dataclass(frozen=True, slots=True)
class BoundaryResponse:
    status: int
    payload: dict[str, Any]

    @property
    def ok(self) -> bool:
        return self.status == 200


def _error(status: int, message: str) -> BoundaryResponse:
    return BoundaryResponse(
        status=status,
        payload=ErrorBody(status=status, message=message).model_dump(mode="json"),
    )


async def handle_calculation_request(
    body: Mapping[str, Any] | str | bytes,
    *,
    engine: CalculationEngine,
) -> BoundaryResponse:
    try:
        request_body = parse_request(body)
        response = await engine.process(to_calculation_request(request_body))
        payload = to_response_body(request_body, response).model_dump(mode="json")
    except (MalformedRequest, EmptyMutationList) as exc:
        log.info("Rejected calculation request: %s", exc)
        return _error(400, INVALID_REQUEST_MESSAGE)
    except Exception:
        log.exception("Calculation request failed")
        return _error(500, INTERNAL_ERROR_MESSAGE)
    return BoundaryResponse(status=200, payload=payload)
