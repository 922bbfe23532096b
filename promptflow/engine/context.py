# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Execution Context

Tracks in-progress state for a single chain or workflow run.
"""

import time
from typing import Dict, Generic, Iterable, List, Optional, TypeVar, Union

from promptflow.engine.models import ExecutionStatus, NodeResult, StepResult, utc_now_iso
from promptflow.engine.substitution import synthetic_variable_names

R = TypeVar("R", StepResult, NodeResult)


class ExecutionContext(Generic[R]):
    """
    Execution context for one run.

    Tracks:
    - Unit results, keyed by step order / node id
    - Prompt ids used by successful units
    - Abort state

    Each concurrent unit writes only its own key, so no locking is needed.
    """

    def __init__(self, execution_id: str, total_units: int):
        self.execution_id = execution_id
        self.total_units = total_units
        self.started_at = utc_now_iso()
        self.completed_at: Optional[str] = None
        self._start = time.perf_counter()
        self.duration_ms = 0

        self.results: Dict[str, R] = {}
        self.used_prompt_ids: List[str] = []
        self.aborted_by: Optional[str] = None

    def record(self, unit_id: Union[str, int], result: R, prompt_id: Optional[str] = None) -> None:
        """Store a unit's result. `prompt_id` is the resolved prompt on success."""
        self.results[str(unit_id)] = result
        if result.error is None and prompt_id:
            self.used_prompt_ids.append(prompt_id)

    def get_result(self, unit_id: Union[str, int]) -> Optional[R]:
        return self.results.get(str(unit_id))

    @property
    def completed_count(self) -> int:
        return len(self.results)

    @property
    def failed_count(self) -> int:
        return sum(1 for r in self.results.values() if r.error is not None)

    @property
    def succeeded_count(self) -> int:
        return self.completed_count - self.failed_count

    def request_abort(self, unit_id: Union[str, int]) -> None:
        """First failing unit wins; later calls keep the original culprit"""
        if self.aborted_by is None:
            self.aborted_by = str(unit_id)

    @property
    def aborted(self) -> bool:
        return self.aborted_by is not None

    def dependency_outputs(self, dependencies: Iterable[str]) -> Dict[str, str]:
        """Synthetic variables for every dependency that succeeded"""
        outputs: Dict[str, str] = {}
        for dep_id in dependencies:
            dep_result = self.results.get(dep_id)
            if dep_result is None or dep_result.error is not None:
                continue
            for name in synthetic_variable_names(dep_id):
                outputs[name] = dep_result.content
        return outputs

    @property
    def status(self) -> ExecutionStatus:
        if self.completed_at is None:
            return ExecutionStatus.RUNNING
        if self.aborted:
            return ExecutionStatus.FAILED
        if self.failed_count > 0:
            return ExecutionStatus.PARTIAL
        return ExecutionStatus.COMPLETED

    def finalize(self) -> None:
        """Mark execution as complete"""
        self.completed_at = utc_now_iso()
        self.duration_ms = int((time.perf_counter() - self._start) * 1000)
