# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Tests for WorkflowExecutor

Covers level scheduling, dependency outputs, bounded parallelism, abort
semantics and observer isolation.
"""

import asyncio

import pytest
from pydantic import ValidationError as PydanticValidationError

from promptflow.core.config import EngineConfig
from promptflow.engine.exceptions import WorkflowValidationError
from promptflow.engine.models import ExecutionStatus, Workflow, WorkflowNode
from promptflow.engine.observer import CallbackObserver
from promptflow.engine.workflow_executor import WorkflowExecutor
from promptflow.prompts.resolver import PromptResolver


def diamond(**overrides):
    """A -> (B, C) -> D, rendering each dependency's output"""
    nodes = {
        "A": dict(id="A", prompt_id="seed"),
        "B": dict(id="B", prompt_id="left", dependencies=["A"]),
        "C": dict(id="C", prompt_id="right", dependencies=["A"]),
        "D": dict(id="D", prompt_id="join", dependencies=["B", "C"]),
    }
    for node_id, extra in overrides.items():
        nodes[node_id].update(extra)
    return Workflow(id="wf-diamond", name="Diamond", nodes=[WorkflowNode(**n) for n in nodes.values()])


def fan_out(count, prompt_id="P4"):
    return Workflow(
        id="wf-fan",
        name="Fan Out",
        nodes=[WorkflowNode(id=f"n{i}", prompt_id=prompt_id) for i in range(count)],
    )


def executor_for(repo, engine_config):
    return WorkflowExecutor(PromptResolver(repo), engine_config)


# =============================================================================
# SCHEDULING AND VARIABLES
# =============================================================================

@pytest.mark.asyncio
async def test_diamond_levels_and_outputs(workflow_executor):
    result = await workflow_executor.execute(diamond(), {"topic": "x"})

    assert result.status == ExecutionStatus.COMPLETED
    assert result.execution_order == [["A"], ["B", "C"], ["D"]]
    assert [r.node_id for r in result.results] == ["A", "B", "C", "D"]
    assert result.get_result("A").content == "Seed x"
    assert result.get_result("B").content == "Left(Seed x)"
    assert result.get_result("C").content == "Right(Seed x)"
    assert result.get_result("D").content == "Join [Left(Seed x)] [Right(Seed x)]"
    assert result.get_result("D").inputs_from == ["B", "C"]
    assert result.nodes_succeeded == 4
    assert result.nodes_failed == 0
    assert sorted(result.used_prompt_ids) == ["join", "left", "right", "seed"]


@pytest.mark.asyncio
async def test_dependency_outputs_in_variables_used(workflow_executor):
    result = await workflow_executor.execute(diamond(), {"topic": "x"})

    used = result.get_result("B").variables_used
    assert used["topic"] == "x"
    assert used["A_result"] == "Seed x"
    assert used["A_output"] == "Seed x"
    # Only direct dependencies are exposed
    assert "A_result" not in result.get_result("D").variables_used


@pytest.mark.asyncio
async def test_declared_variable_wins_over_dependency_output(workflow_executor):
    workflow = diamond(B={"variables": {"A_result": "mine"}})

    result = await workflow_executor.execute(workflow, {"topic": "x"})

    assert result.get_result("B").content == "Left(mine)"
    assert result.get_result("C").content == "Right(Seed x)"


@pytest.mark.asyncio
async def test_every_dependency_finishes_before_dependent_starts(tracking_repository_factory, engine_config):
    repo = tracking_repository_factory(delay=0.01)
    started = []
    finished = []
    observer = CallbackObserver(
        on_start=lambda node: started.append(node.id),
        on_complete=lambda node, result: finished.append(node.id),
    )

    await executor_for(repo, engine_config).execute(diamond(), {"topic": "x"}, observer=observer)

    assert started.index("D") > finished.index("B")
    assert started.index("D") > finished.index("C")
    assert started.index("B") > finished.index("A")


@pytest.mark.asyncio
async def test_prefix_resolved_node(workflow_executor):
    workflow = Workflow(id="w", name="Prefix", nodes=[
        WorkflowNode(id="review", prompt_id="ARCH", variables={"code": "app.py"}),
    ])

    result = await workflow_executor.execute(workflow)

    assert result.get_result("review").content == "Review app.py"
    assert result.used_prompt_ids == ["ARCH-001:architect-review"]


# =============================================================================
# CONCURRENCY
# =============================================================================

@pytest.mark.asyncio
@pytest.mark.parametrize("cap", [1, 2, 3])
async def test_concurrency_cap_is_reached_and_never_exceeded(tracking_repository_factory, engine_config, cap):
    repo = tracking_repository_factory(delay=0.02)

    result = await executor_for(repo, engine_config).execute(fan_out(6), max_concurrency=cap)

    assert result.status == ExecutionStatus.COMPLETED
    assert result.nodes_succeeded == 6
    assert repo.peak == cap


@pytest.mark.asyncio
async def test_uncapped_level_runs_all_nodes_together(tracking_repository_factory, engine_config):
    repo = tracking_repository_factory(delay=0.02)

    await executor_for(repo, engine_config).execute(fan_out(5), max_concurrency=10)

    assert repo.peak == 5


@pytest.mark.asyncio
async def test_sequential_mode(tracking_repository_factory, engine_config):
    repo = tracking_repository_factory(delay=0.01)

    result = await executor_for(repo, engine_config).execute(fan_out(4), parallel=False)

    assert repo.peak == 1
    assert [r.node_id for r in result.results] == ["n0", "n1", "n2", "n3"]


@pytest.mark.asyncio
async def test_parallel_default_comes_from_config(tracking_repository_factory):
    repo = tracking_repository_factory(delay=0.01)

    await executor_for(repo, EngineConfig(parallel=False)).execute(fan_out(3))

    assert repo.peak == 1


@pytest.mark.asyncio
async def test_results_ordered_by_level_position(tracking_repository_factory, engine_config):
    """A failing first node still comes first in the result list"""
    repo = tracking_repository_factory(delay=0.01, failing={"P1"})
    workflow = Workflow(id="w", name="Order", nodes=[
        WorkflowNode(id="first", prompt_id="P1", continue_on_error=True),
        WorkflowNode(id="second", prompt_id="P4"),
    ])

    result = await executor_for(repo, engine_config).execute(workflow, {"topic": "t"})

    assert [r.node_id for r in result.results] == ["first", "second"]


@pytest.mark.asyncio
async def test_zero_concurrency_rejected(workflow_executor):
    with pytest.raises(ValueError):
        await workflow_executor.execute(fan_out(2), max_concurrency=0)


# =============================================================================
# FAILURES
# =============================================================================

@pytest.mark.asyncio
async def test_failure_aborts_later_levels(tracking_repository_factory, engine_config):
    """B fails: its sibling C still completes, D never starts"""
    repo = tracking_repository_factory(delay=0.01, failing={"left"})

    result = await executor_for(repo, engine_config).execute(diamond(), {"topic": "x"})

    assert result.status == ExecutionStatus.FAILED
    assert [r.node_id for r in result.results] == ["A", "B", "C"]
    assert result.get_result("B").error is not None
    assert result.get_result("B").content == ""
    assert result.get_result("C").content == "Right(Seed x)"
    assert result.get_result("D") is None
    assert "join" not in repo.reads
    assert result.nodes_succeeded == 2
    assert result.nodes_failed == 1
    assert result.execution_order == [["A"], ["B", "C"], ["D"]]


@pytest.mark.asyncio
async def test_abort_stops_dispatch_within_level(tracking_repository_factory, engine_config):
    """With one permit, nodes queued behind a failure are never started"""
    repo = tracking_repository_factory(delay=0.01, failing={"P1"})
    workflow = Workflow(id="w", name="Abort", nodes=[
        WorkflowNode(id="X", prompt_id="P1"),
        WorkflowNode(id="Y", prompt_id="P2"),
        WorkflowNode(id="Z", prompt_id="P4"),
    ])

    result = await executor_for(repo, engine_config).execute(workflow, {"topic": "t"}, max_concurrency=1)

    assert result.status == ExecutionStatus.FAILED
    assert [r.node_id for r in result.results] == ["X"]
    assert repo.reads == ["P1"]


@pytest.mark.asyncio
async def test_continue_on_error_gives_partial(tracking_repository_factory, engine_config):
    repo = tracking_repository_factory(delay=0.01, failing={"left"})
    workflow = diamond(B={"continue_on_error": True})

    result = await executor_for(repo, engine_config).execute(workflow, {"topic": "x"})

    assert result.status == ExecutionStatus.PARTIAL
    assert [r.node_id for r in result.results] == ["A", "B", "C", "D"]
    # Failed dependencies contribute no outputs
    assert result.get_result("D").content == "Join [{{B_result}}] [Right(Seed x)]"
    assert result.nodes_failed == 1
    assert "left" not in result.used_prompt_ids


@pytest.mark.asyncio
async def test_invalid_workflow_raises(workflow_executor):
    workflow = Workflow(id="w-cycle", name="Cycle", nodes=[
        WorkflowNode(id="A", prompt_id="P4", dependencies=["B"]),
        WorkflowNode(id="B", prompt_id="P4", dependencies=["A"]),
    ])

    with pytest.raises(WorkflowValidationError) as exc_info:
        await workflow_executor.execute(workflow)

    assert "Workflow contains circular dependencies" in exc_info.value.errors
    assert exc_info.value.to_dict()["details"]["id"] == "w-cycle"


@pytest.mark.asyncio
async def test_observer_failures_are_isolated(workflow_executor):
    def explode(*args):
        raise RuntimeError("observer bug")

    observer = CallbackObserver(on_start=explode, on_complete=explode, on_error=explode, on_progress=explode)

    result = await workflow_executor.execute(diamond(), {"topic": "x"}, observer=observer)

    assert result.status == ExecutionStatus.COMPLETED
    assert result.nodes_succeeded == 4


@pytest.mark.asyncio
async def test_progress_counts(workflow_executor):
    progress = []
    observer = CallbackObserver(on_progress=lambda done, total, result: progress.append((done, total)))

    await workflow_executor.execute(diamond(), {"topic": "x"}, observer=observer)

    assert progress == [(1, 4), (2, 4), (3, 4), (4, 4)]


@pytest.mark.asyncio
async def test_results_are_frozen(workflow_executor):
    result = await workflow_executor.execute(fan_out(1))

    with pytest.raises(PydanticValidationError):
        result.status = ExecutionStatus.FAILED


# =============================================================================
# PREVIEW / OUTPUT / DAG
# =============================================================================

@pytest.mark.asyncio
async def test_preview(workflow_executor):
    preview = await workflow_executor.preview(diamond(), {"topic": "x"})

    assert preview.valid
    assert "Workflow Execution Preview" in preview.preview
    assert "Levels: 3 (parallel execution stages)" in preview.preview
    assert "Depends on: B, C" in preview.preview
    assert "Name: Seed" in preview.preview


@pytest.mark.asyncio
async def test_preview_of_invalid_workflow(workflow_executor):
    preview = await workflow_executor.preview(Workflow(id="w", name="Empty"))

    assert not preview.valid
    assert preview.errors == ["Workflow must have at least one node"]


@pytest.mark.asyncio
async def test_execute_with_output(tracking_repository_factory, engine_config):
    repo = tracking_repository_factory(delay=0, failing={"left"})

    result, text = await executor_for(repo, engine_config).execute_with_output(diamond(), {"topic": "x"})

    assert result.status == ExecutionStatus.FAILED
    assert "Workflow Execution Results" in text
    assert "Status: FAILED" in text
    assert "[FAIL] B: Left" in text
    assert "[DONE] C: Right" in text
    assert "[SKIP] D" in text


@pytest.mark.asyncio
async def test_generate_dag_uses_prompt_names(workflow_executor):
    dot = await workflow_executor.generate_dag(diamond())

    assert dot.startswith("digraph Workflow {")
    assert '"A" [label="A\\nSeed"];' in dot
    assert '"A" -> "B";' in dot
    assert '"C" -> "D";' in dot


@pytest.mark.asyncio
async def test_prompt_missing_at_run_time_aborts(vanishing_repository_factory, engine_config):
    """B's prompt disappears after validation: B fails, C completes, D never starts"""
    repo = vanishing_repository_factory({"left"})

    result = await executor_for(repo, engine_config).execute(diamond(), {"topic": "x"})

    assert result.status == ExecutionStatus.FAILED
    assert [r.node_id for r in result.results] == ["A", "B", "C"]
    assert result.get_result("B").error == "Prompt 'left' not found"
    assert result.get_result("B").prompt_name == "Unknown"
    assert "left" not in result.used_prompt_ids


@pytest.mark.asyncio
async def test_prompt_missing_at_run_time_with_continue(vanishing_repository_factory, engine_config):
    repo = vanishing_repository_factory({"left"})
    workflow = diamond(B={"continue_on_error": True})

    result = await executor_for(repo, engine_config).execute(workflow, {"topic": "x"})

    assert result.status == ExecutionStatus.PARTIAL
    assert [r.node_id for r in result.results] == ["A", "B", "C", "D"]
    assert result.get_result("B").error == "Prompt 'left' not found"
    assert sorted(result.used_prompt_ids) == ["join", "right", "seed"]


@pytest.mark.asyncio
async def test_cancelled_run_leaves_no_running_nodes(tracking_repository_factory, engine_config):
    """A wait_for timeout mid-level cancels dispatched nodes; nothing fires afterwards"""
    repo = tracking_repository_factory(delay=0.2)
    events = []
    observer = CallbackObserver(
        on_complete=lambda node, result: events.append(("complete", node.id)),
        on_progress=lambda done, total, result: events.append(("progress", done)),
    )
    executor = executor_for(repo, engine_config)

    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(
            executor.execute(fan_out(3), max_concurrency=1, observer=observer),
            timeout=0.05,
        )
    await asyncio.sleep(0.4)

    assert events == []
    assert repo.in_flight == 0
    assert repo.reads == ["P4"]
