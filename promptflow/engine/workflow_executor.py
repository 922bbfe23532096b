# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow Executor

Level-based DAG execution engine.
"""

import asyncio
import time
from typing import Dict, List, Mapping, Optional, Tuple

from promptflow.core.config import EngineConfig, get_config
from promptflow.core.errors import ExecutionError, sanitize_error_for_user
from promptflow.core.logging import get_engine_logger, log_event
from promptflow.engine.context import ExecutionContext
from promptflow.engine.exceptions import (
    CycleDetectedError,
    PromptResolutionError,
    WorkflowValidationError,
)
from promptflow.engine.models import (
    NodeResult,
    PreviewResult,
    ValidationResult,
    Workflow,
    WorkflowExecutionResult,
    WorkflowNode,
    utc_now_iso,
)
from promptflow.engine.observer import ExecutionObserver, notify
from promptflow.engine.reporting import format_workflow_preview, format_workflow_result, generate_dag
from promptflow.engine.substitution import merge_variables, substitute
from promptflow.engine.validation import topological_levels, validate_workflow
from promptflow.prompts.resolver import PromptResolver

logger = get_engine_logger("workflow")


class WorkflowExecutor:
    """
    Level-based workflow executor.

    Levels run strictly in order. Inside a level, nodes run concurrently
    (bounded by max_concurrency) or sequentially. A node only starts once
    every dependency's result is recorded.
    """

    def __init__(self, resolver: PromptResolver, config: Optional[EngineConfig] = None):
        self.resolver = resolver
        self.config = config or get_config()

    async def validate(self, workflow: Workflow) -> ValidationResult:
        return await validate_workflow(workflow, self.resolver)

    async def execute(
        self,
        workflow: Workflow,
        variables: Optional[Mapping[str, str]] = None,
        parallel: Optional[bool] = None,
        max_concurrency: Optional[int] = None,
        observer: Optional[ExecutionObserver] = None
    ) -> WorkflowExecutionResult:
        """
        Execute workflow level by level.

        Raises WorkflowValidationError before running anything if the
        workflow is malformed. Returns a result even when a node failure
        aborts the run.
        """
        parallel = self.config.parallel if parallel is None else parallel
        max_concurrency = self.config.max_concurrency if max_concurrency is None else max_concurrency
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be at least 1, got {max_concurrency}")

        # Validate workflow
        validation = await self.validate(workflow)
        if not validation.valid:
            log_event(logger, "workflow_validation_failed", "WARNING", workflow_id=workflow.id, errors=validation.errors)
            raise WorkflowValidationError(workflow.id, validation.errors)
        for warning in validation.warnings:
            logger.warning(warning)

        try:
            levels = topological_levels(workflow.nodes)
        except CycleDetectedError as e:
            # Validation rejects cycles; reaching this means the definition changed underneath us
            raise ExecutionError(e.message, execution_id=workflow.id) from e

        node_map = {node.id: node for node in workflow.nodes}
        global_vars = dict(variables or {})
        context: ExecutionContext[NodeResult] = ExecutionContext(workflow.id, total_units=len(node_map))

        log_event(
            logger, "workflow_started",
            workflow_id=workflow.id,
            nodes=len(node_map),
            levels=len(levels),
            parallel=parallel,
            max_concurrency=max_concurrency
        )

        for level in levels:
            nodes = [node_map[node_id] for node_id in level]

            if parallel and len(nodes) > 1:
                await self._execute_level_parallel(nodes, global_vars, context, observer, max_concurrency)
            else:
                await self._execute_level_sequential(nodes, global_vars, context, observer)

            if context.aborted:
                logger.warning(f"Workflow '{workflow.id}' aborted: node '{context.aborted_by}' failed")
                break

        context.finalize()
        result = WorkflowExecutionResult(
            workflow_id=workflow.id,
            workflow_name=workflow.name,
            status=context.status,
            results=[context.results[node_id] for level in levels for node_id in level if node_id in context.results],
            started_at=context.started_at,
            completed_at=context.completed_at,
            duration_ms=context.duration_ms,
            nodes_succeeded=context.succeeded_count,
            nodes_failed=context.failed_count,
            execution_order=levels,
            used_prompt_ids=list(context.used_prompt_ids),
        )

        log_event(
            logger, "workflow_finished",
            workflow_id=workflow.id,
            status=result.status.value,
            succeeded=result.nodes_succeeded,
            failed=result.nodes_failed,
            duration_ms=result.duration_ms
        )
        return result

    async def _execute_level_sequential(
        self,
        nodes: List[WorkflowNode],
        global_vars: Dict[str, str],
        context: ExecutionContext,
        observer: Optional[ExecutionObserver]
    ) -> None:
        for node in nodes:
            if context.aborted:
                return
            await self._run_node(node, global_vars, context, observer)

    async def _execute_level_parallel(
        self,
        nodes: List[WorkflowNode],
        global_vars: Dict[str, str],
        context: ExecutionContext,
        observer: Optional[ExecutionObserver],
        max_concurrency: int
    ) -> None:
        """
        Run a level with at most `max_concurrency` nodes in flight.

        A node task is only created once a permit is held, so the number of
        live tasks never exceeds the cap. Once an abort is signalled no new
        node is dispatched; nodes already in flight run to completion.
        """
        semaphore = asyncio.Semaphore(max_concurrency)
        tasks = []

        async def run(node: WorkflowNode) -> None:
            try:
                await self._run_node(node, global_vars, context, observer)
            finally:
                semaphore.release()

        try:
            for node in nodes:
                await semaphore.acquire()
                if context.aborted:
                    semaphore.release()
                    break
                tasks.append(asyncio.create_task(run(node)))

            # Wait for all dispatched nodes, capturing exceptions
            results = await asyncio.gather(*tasks, return_exceptions=True)
        except BaseException:
            # Cancelled from outside (e.g. wait_for timeout): no task outlives the call
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        for result in results:
            if isinstance(result, BaseException):
                raise result

    async def _run_node(
        self,
        node: WorkflowNode,
        global_vars: Dict[str, str],
        context: ExecutionContext,
        observer: Optional[ExecutionObserver]
    ) -> None:
        """Execute a single node and record its result"""
        result, prompt_id = await self._execute_node(node, global_vars, context, observer)
        context.record(node.id, result, prompt_id)

        notify(observer, "on_unit_complete", node, result, logger=logger)
        notify(observer, "on_progress", context.completed_count, context.total_units, result, logger=logger)

        if result.error is not None and not node.continue_on_error:
            context.request_abort(node.id)

    async def _execute_node(
        self,
        node: WorkflowNode,
        global_vars: Dict[str, str],
        context: ExecutionContext,
        observer: Optional[ExecutionObserver]
    ) -> Tuple[NodeResult, Optional[str]]:
        """Resolve, render and time one node. Never raises."""
        notify(observer, "on_unit_start", node, logger=logger)

        started_at = utc_now_iso()
        start = time.perf_counter()
        merged = merge_variables(global_vars, node.variables, context.dependency_outputs(node.dependencies))
        prompt_name = "Unknown"
        content = ""
        error = None
        resolved_id = None

        try:
            prompt = await self.resolver.resolve(node.prompt_id)
            if prompt is None:
                raise PromptResolutionError(node.prompt_id)

            prompt_name = prompt.name
            content = substitute(await self.resolver.get_content(prompt), merged)
            resolved_id = prompt.id
        except Exception as e:
            error = sanitize_error_for_user(e)
            logger.error(f"Node '{node.id}' ({node.prompt_id}) failed: {error}")
            notify(observer, "on_unit_error", node, e, logger=logger)

        result = NodeResult(
            node_id=node.id,
            prompt_id=node.prompt_id,
            prompt_name=prompt_name,
            content=content if error is None else "",
            variables_used=merged,
            inputs_from=list(node.dependencies),
            error=error,
            duration_ms=int((time.perf_counter() - start) * 1000),
            started_at=started_at,
            completed_at=utc_now_iso(),
        )
        return result, resolved_id

    async def _prompt_names(self, workflow: Workflow) -> Dict[str, str]:
        names = {}
        for node in workflow.nodes:
            if node.prompt_id not in names:
                prompt = await self.resolver.resolve(node.prompt_id)
                names[node.prompt_id] = prompt.name if prompt else "Unknown"
        return names

    async def preview(
        self,
        workflow: Workflow,
        variables: Optional[Mapping[str, str]] = None
    ) -> PreviewResult:
        """Dry run: validate, level, and describe the plan without rendering"""
        validation = await self.validate(workflow)
        if not validation.valid:
            return PreviewResult(valid=False, errors=validation.errors, warnings=validation.warnings)

        try:
            levels = topological_levels(workflow.nodes)
        except CycleDetectedError:
            return PreviewResult(valid=False, errors=["Circular dependencies detected"])

        return PreviewResult(
            valid=True,
            warnings=validation.warnings,
            preview=format_workflow_preview(workflow, levels, await self._prompt_names(workflow), variables),
        )

    async def execute_with_output(
        self,
        workflow: Workflow,
        variables: Optional[Mapping[str, str]] = None,
        parallel: Optional[bool] = None,
        max_concurrency: Optional[int] = None,
        observer: Optional[ExecutionObserver] = None
    ) -> Tuple[WorkflowExecutionResult, str]:
        """Execute and return the result with a formatted text report"""
        result = await self.execute(
            workflow,
            variables=variables,
            parallel=parallel,
            max_concurrency=max_concurrency,
            observer=observer
        )
        return result, format_workflow_result(result)

    async def generate_dag(self, workflow: Workflow) -> str:
        """Graphviz DOT rendering labelled with prompt names"""
        return generate_dag(workflow, await self._prompt_names(workflow))
