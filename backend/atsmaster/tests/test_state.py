import asyncio

import pytest

from conftest import JOB_DESCRIPTION, RESUME, FakeAnalyzer
from atsmaster.core import GENERIC_ERROR_MESSAGE
from atsmaster.exceptions import InvalidTransitionError, TransportError
from atsmaster.state import AnalysisController, Failed, Idle, InFlight, Succeeded


def test_starts_idle():
    controller = AnalysisController(FakeAnalyzer())
    assert controller.state == Idle()
    assert controller.can_submit


@pytest.mark.anyio
async def test_submit_moves_through_in_flight_to_succeeded():
    analyzer = FakeAnalyzer()
    gate = analyzer.hold()
    controller = AnalysisController(analyzer)

    task = controller.submit(RESUME, JOB_DESCRIPTION)
    assert isinstance(controller.state, InFlight)

    with pytest.raises(InvalidTransitionError):
        controller.submit(RESUME, JOB_DESCRIPTION)

    gate.set()
    await task
    assert isinstance(controller.state, Succeeded)
    assert controller.state.result.score == 42


@pytest.mark.anyio
async def test_unexpected_errors_still_settle():
    controller = AnalysisController(FakeAnalyzer(error=KeyError("boom")))
    await controller.submit(RESUME, JOB_DESCRIPTION)
    assert controller.state == Failed(GENERIC_ERROR_MESSAGE)


@pytest.mark.anyio
async def test_retry_after_failure():
    analyzer = FakeAnalyzer(error=TransportError("offline"))
    controller = AnalysisController(analyzer)
    await controller.submit(RESUME, JOB_DESCRIPTION)
    assert isinstance(controller.state, Failed)

    analyzer.error = None
    await controller.submit(RESUME, JOB_DESCRIPTION)
    assert isinstance(controller.state, Succeeded)


@pytest.mark.anyio
async def test_submit_after_success_requires_reset():
    controller = AnalysisController(FakeAnalyzer())
    await controller.submit(RESUME, JOB_DESCRIPTION)

    with pytest.raises(InvalidTransitionError):
        controller.submit(RESUME, JOB_DESCRIPTION)

    controller.reset()
    assert controller.state == Idle()


@pytest.mark.anyio
async def test_reset_while_in_flight_discards_outcome():
    analyzer = FakeAnalyzer()
    gate = analyzer.hold()
    controller = AnalysisController(analyzer)

    task = controller.submit(RESUME, JOB_DESCRIPTION)
    await asyncio.sleep(0)
    controller.reset()
    gate.set()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert controller.state == Idle()
