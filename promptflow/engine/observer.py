# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Execution Observers

Progress notifications are delivered to an observer injected per call,
never through module-level hooks, so concurrent executions cannot see each
other's events. Observer failures are logged and swallowed; they never
reach the scheduler or alter a result.
"""

import logging
from typing import Any, Callable, Optional, Union

from promptflow.engine.models import ChainStep, NodeResult, StepResult, WorkflowNode

Unit = Union[ChainStep, WorkflowNode]
UnitResult = Union[StepResult, NodeResult]


class ExecutionObserver:
    """Receives synchronous notifications from an executor. Override what you need."""

    def on_unit_start(self, unit: Unit) -> None:
        pass

    def on_unit_complete(self, unit: Unit, result: UnitResult) -> None:
        pass

    def on_unit_error(self, unit: Unit, error: Exception) -> None:
        pass

    def on_progress(self, completed: int, total: int, result: UnitResult) -> None:
        pass


class CallbackObserver(ExecutionObserver):
    """Adapts plain callables to the observer interface"""

    def __init__(
        self,
        on_start: Optional[Callable[[Unit], Any]] = None,
        on_complete: Optional[Callable[[Unit, UnitResult], Any]] = None,
        on_error: Optional[Callable[[Unit, Exception], Any]] = None,
        on_progress: Optional[Callable[[int, int, UnitResult], Any]] = None,
    ):
        self._on_start = on_start
        self._on_complete = on_complete
        self._on_error = on_error
        self._on_progress = on_progress

    def on_unit_start(self, unit):
        if self._on_start:
            self._on_start(unit)

    def on_unit_complete(self, unit, result):
        if self._on_complete:
            self._on_complete(unit, result)

    def on_unit_error(self, unit, error):
        if self._on_error:
            self._on_error(unit, error)

    def on_progress(self, completed, total, result):
        if self._on_progress:
            self._on_progress(completed, total, result)


def notify(
    observer: Optional[ExecutionObserver],
    event: str,
    *args: Any,
    logger: Optional[logging.Logger] = None
) -> None:
    """Invoke `observer.<event>(*args)`, isolating any exception it raises."""
    if observer is None:
        return
    try:
        getattr(observer, event)(*args)
    except Exception as e:
        if logger is not None:
            logger.warning(f"Observer {event} raised {e.__class__.__name__}: {e}")
