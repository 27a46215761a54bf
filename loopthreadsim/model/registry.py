"""Canonical list of in-flight requests for a run."""

from __future__ import annotations

import logging

from loopthreadsim.model.request import Request, RequestPhase, RequestStatus

logger = logging.getLogger(__name__)


class RequestRegistry:
    """Holds every request that has been submitted and not yet completed.

    The registry is the only place a request is deleted. Engines and workers
    hold references while they work on a request, but completion always
    ends here through remove().
    """

    def __init__(self) -> None:
        self._requests: dict[int, Request] = {}
        self._total_added = 0
        self._total_removed = 0

    def __len__(self) -> int:
        return len(self._requests)

    def __contains__(self, request_id: int) -> bool:
        return request_id in self._requests

    def add(self, request: Request) -> None:
        if request.id in self._requests:
            raise ValueError(f"Request {request.id} is already registered")
        self._requests[request.id] = request
        self._total_added += 1

    def get(self, request_id: int) -> Request | None:
        return self._requests.get(request_id)

    def update_phase(
        self,
        request_id: int,
        phase: RequestPhase,
        status: RequestStatus = RequestStatus.PROCESSING,
    ) -> Request | None:
        """Set a request's phase and status. Returns None for unknown ids."""
        request = self._requests.get(request_id)
        if request is None:
            logger.debug("Phase update for unknown request %s ignored", request_id)
            return None
        request.phase = phase
        request.status = status
        return request

    def remove(self, request_id: int) -> Request | None:
        """Delete a request. Returns it, or None if it was already gone."""
        request = self._requests.pop(request_id, None)
        if request is not None:
            self._total_removed += 1
        return request

    def active(self) -> list[Request]:
        """Requests in submission order."""
        return list(self._requests.values())

    def for_worker(self, worker_id: int) -> list[Request]:
        return [r for r in self._requests.values() if r.worker_id == worker_id]

    @property
    def total_added(self) -> int:
        return self._total_added

    @property
    def total_removed(self) -> int:
        return self._total_removed

    def clear(self) -> None:
        self._requests.clear()
        self._total_added = 0
        self._total_removed = 0
