"""Fixtures shared by the unit and integration suites."""

import logging
from pathlib import Path

import pytest

from loopthreadsim import Instant, Request, RequestType, TimingModel


@pytest.fixture(scope="session")
def test_output_root() -> Path:
    """``test_output/`` at the repo root; plots written there are kept after the run."""
    root = Path(__file__).parent.parent / "test_output"
    root.mkdir(exist_ok=True)
    return root


@pytest.fixture
def test_output_dir(request, test_output_root) -> Path:
    """Per-test folder laid out as ``test_output/<module>/<test>/``."""
    module_name = request.module.__name__.rsplit(".", 1)[-1]
    folder = test_output_root / module_name / request.node.name
    folder.mkdir(parents=True, exist_ok=True)
    return folder


@pytest.fixture
def constant_timing() -> TimingModel:
    """Deterministic durations: pre 400ms, async call 800ms, post 300ms,
    thread until call 800ms, blocking call 1100ms."""
    return TimingModel.constant()


@pytest.fixture
def make_request():
    """Factory for requests created at the epoch on worker 0."""

    def _make(request_id: int, request_type: RequestType = RequestType.ASYNC) -> Request:
        return Request(
            id=request_id,
            type=request_type,
            worker_id=0,
            start_time=Instant.Epoch,
        )

    return _make


@pytest.fixture(autouse=True)
def quiet_package_logger():
    """Leave the package logger with only a NullHandler around every test."""
    package_logger = logging.getLogger("loopthreadsim")

    def _restore():
        while package_logger.handlers:
            handler = package_logger.handlers[0]
            package_logger.removeHandler(handler)
            handler.close()
        package_logger.addHandler(logging.NullHandler())
        package_logger.setLevel(logging.NOTSET)

    _restore()
    yield
    _restore()
