from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Union

from atsmaster.ai import Analyzer
from atsmaster.core import GENERIC_ERROR_MESSAGE, AnalysisResult
from atsmaster.exceptions import AnalysisError, ConfigurationError, InvalidTransitionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Idle:
    name = "idle"


@dataclass(frozen=True)
class InFlight:
    name = "in_flight"


@dataclass(frozen=True)
class Succeeded:
    result: AnalysisResult
    name = "succeeded"


@dataclass(frozen=True)
class Failed:
    message: str
    name = "failed"


AnalysisState = Union[Idle, InFlight, Succeeded, Failed]


class AnalysisController:
    """
    Holds one analysis lifecycle: idle -> in flight -> succeeded | failed,
    and back to idle on reset. Only one analysis may run at a time.
    """

    def __init__(self, analyzer: Analyzer) -> None:
        self.analyzer = analyzer
        self.state: AnalysisState = Idle()
        self._task: Optional[asyncio.Task] = None

    @property
    def can_submit(self) -> bool:
        return isinstance(self.state, (Idle, Failed))

    def _set_state(self, state: AnalysisState) -> None:
        logger.debug("Analysis state %s -> %s", self.state.name, state.name)
        self.state = state

    def submit(self, resume_text: str, job_description: str) -> asyncio.Task:
        """
        Move to in-flight right away and schedule the analysis.

        The returned task can be awaited. Analysis errors do not propagate
        out of it; the outcome lands in ``state``.
        """
        if not self.can_submit:
            raise InvalidTransitionError(f"Cannot submit while {self.state.name}.")

        self._set_state(InFlight())
        task = asyncio.create_task(self._run(resume_text, job_description))
        self._task = task
        return task

    async def _run(self, resume_text: str, job_description: str) -> None:
        try:
            result = await self.analyzer.analyze(resume_text, job_description)
        except asyncio.CancelledError:
            raise
        except ConfigurationError as e:
            logger.error("Analysis not configured: %s", e)
            outcome: AnalysisState = Failed(str(e))
        except AnalysisError as e:
            logger.warning("Analysis failed: %s: %s", type(e).__name__, e)
            outcome = Failed(GENERIC_ERROR_MESSAGE)
        except Exception:
            logger.exception("Unexpected error during analysis")
            outcome = Failed(GENERIC_ERROR_MESSAGE)
        else:
            outcome = Succeeded(result)

        # a reset during the call discards the outcome
        if self._task is asyncio.current_task():
            self._set_state(outcome)
            self._task = None

    def reset(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self._set_state(Idle())
