"""Request data model."""

from loopthreadsim.model.registry import RequestRegistry
from loopthreadsim.model.request import (
    Request,
    RequestIdGenerator,
    RequestPhase,
    RequestStatus,
    RequestType,
)

__all__ = [
    "Request",
    "RequestIdGenerator",
    "RequestPhase",
    "RequestRegistry",
    "RequestStatus",
    "RequestType",
]
