# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Chain Executor

Runs the steps of a chain strictly in ascending `order`, one at a time.
"""

import time
from typing import Dict, Mapping, Optional, Tuple

from promptflow.core.errors import sanitize_error_for_user
from promptflow.core.logging import get_engine_logger, log_event
from promptflow.engine.context import ExecutionContext
from promptflow.engine.exceptions import ChainValidationError, ExecutionAbort, PromptResolutionError
from promptflow.engine.models import (
    Chain,
    ChainStep,
    ExecutionResult,
    PreviewResult,
    StepResult,
    ValidationResult,
    utc_now_iso,
)
from promptflow.engine.observer import ExecutionObserver, notify
from promptflow.engine.reporting import format_chain_preview, format_chain_result
from promptflow.engine.substitution import merge_variables, substitute
from promptflow.engine.validation import validate_chain
from promptflow.prompts.resolver import PromptResolver

logger = get_engine_logger("chain")


class ChainExecutor:
    """
    Sequential chain executor.

    A failing step aborts the chain unless it sets `continue_on_error`.
    Aborted runs still return a result holding every step attempted.
    """

    def __init__(self, resolver: PromptResolver):
        self.resolver = resolver

    async def validate(self, chain: Chain) -> ValidationResult:
        return await validate_chain(chain, self.resolver)

    async def execute(
        self,
        chain: Chain,
        variables: Optional[Mapping[str, str]] = None,
        observer: Optional[ExecutionObserver] = None
    ) -> ExecutionResult:
        """
        Execute a chain.

        Raises ChainValidationError before running anything if the chain is
        malformed. Per-step failures are recorded on the step result.
        """
        validation = await self.validate(chain)
        if not validation.valid:
            log_event(logger, "chain_validation_failed", "WARNING", chain_id=chain.id, errors=validation.errors)
            raise ChainValidationError(chain.id, validation.errors)

        steps = sorted(chain.steps, key=lambda s: s.order)
        global_vars = dict(variables or {})
        context: ExecutionContext[StepResult] = ExecutionContext(chain.id, total_units=len(steps))

        log_event(logger, "chain_started", chain_id=chain.id, steps=len(steps))

        try:
            for step in steps:
                result, prompt_id = await self._execute_step(step, global_vars, observer)
                context.record(step.order, result, prompt_id)
                notify(observer, "on_unit_complete", step, result, logger=logger)
                notify(observer, "on_progress", context.completed_count, len(steps), result, logger=logger)

                if result.error is not None and not step.continue_on_error:
                    context.request_abort(step.order)
                    raise ExecutionAbort(f"step {step.order}", result.error, execution_id=chain.id)

        except ExecutionAbort as e:
            logger.warning(f"Chain '{chain.id}' aborted: {e.message}")

        context.finalize()
        result = ExecutionResult(
            chain_id=chain.id,
            chain_name=chain.name,
            status=context.status,
            results=[context.results[str(step.order)] for step in steps if str(step.order) in context.results],
            started_at=context.started_at,
            completed_at=context.completed_at,
            duration_ms=context.duration_ms,
            steps_succeeded=context.succeeded_count,
            steps_failed=context.failed_count,
            used_prompt_ids=list(context.used_prompt_ids),
        )

        log_event(
            logger, "chain_finished",
            chain_id=chain.id,
            status=result.status.value,
            succeeded=result.steps_succeeded,
            failed=result.steps_failed,
            duration_ms=result.duration_ms
        )
        return result

    async def _execute_step(
        self,
        step: ChainStep,
        global_vars: Dict[str, str],
        observer: Optional[ExecutionObserver]
    ) -> Tuple[StepResult, Optional[str]]:
        """Resolve, render and time one step. Never raises."""
        notify(observer, "on_unit_start", step, logger=logger)

        started_at = utc_now_iso()
        start = time.perf_counter()
        merged = merge_variables(global_vars, step.variables)
        prompt_name = "Unknown"
        content = ""
        error = None
        resolved_id = None

        try:
            prompt = await self.resolver.resolve(step.prompt_id)
            if prompt is None:
                raise PromptResolutionError(step.prompt_id)

            prompt_name = prompt.name
            content = substitute(await self.resolver.get_content(prompt), merged)
            resolved_id = prompt.id
        except Exception as e:
            error = sanitize_error_for_user(e)
            logger.error(f"Step {step.order} ({step.prompt_id}) failed: {error}")
            notify(observer, "on_unit_error", step, e, logger=logger)

        result = StepResult(
            step=step.order,
            prompt_id=step.prompt_id,
            prompt_name=prompt_name,
            content=content if error is None else "",
            variables_used=merged,
            error=error,
            duration_ms=int((time.perf_counter() - start) * 1000),
            started_at=started_at,
            completed_at=utc_now_iso(),
        )
        return result, resolved_id

    async def preview(
        self,
        chain: Chain,
        variables: Optional[Mapping[str, str]] = None
    ) -> PreviewResult:
        """Dry run: validate and describe what would execute, without rendering"""
        validation = await self.validate(chain)
        if not validation.valid:
            return PreviewResult(valid=False, errors=validation.errors, warnings=validation.warnings)

        prompt_names = {}
        for step in chain.steps:
            prompt = await self.resolver.resolve(step.prompt_id)
            prompt_names[step.prompt_id] = prompt.name if prompt else "Unknown"

        return PreviewResult(
            valid=True,
            warnings=validation.warnings,
            preview=format_chain_preview(chain, prompt_names, variables),
        )

    async def execute_with_output(
        self,
        chain: Chain,
        variables: Optional[Mapping[str, str]] = None,
        observer: Optional[ExecutionObserver] = None
    ) -> Tuple[ExecutionResult, str]:
        """Execute and return the result with a formatted text report"""
        result = await self.execute(chain, variables=variables, observer=observer)
        return result, format_chain_result(result)
