# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Execution Reports

Human-readable boxed reports and dry-run previews, JSON export/import of
results, and Graphviz DOT rendering of workflows.
"""

from typing import Dict, List, Mapping, Optional, Union

from promptflow.engine.models import (
    Chain,
    ExecutionResult,
    Workflow,
    WorkflowExecutionResult,
)

BOX_WIDTH = 79
CONTENT_PREVIEW_CHARS = 200
VARIABLE_PREVIEW_CHARS = 20


def _top() -> str:
    return "┌" + "─" * BOX_WIDTH + "┐\n"


def _divider() -> str:
    return "├" + "─" * BOX_WIDTH + "┤\n"


def _bottom() -> str:
    return "└" + "─" * BOX_WIDTH + "┘\n"


def _row(text: str) -> str:
    return "│" + text.ljust(BOX_WIDTH)[:BOX_WIDTH] + "│\n"


def _section(title: str) -> str:
    head = f"┌─ {title} "
    return head + "─" * max(BOX_WIDTH + 1 - len(head), 3) + "┐\n"


def _header(title: str, lines: List[str]) -> str:
    out = _top() + _row(title) + _divider()
    for line in lines:
        out += _row(line)
    return out + _bottom() + "\n"


def _format_variables(variables: Mapping[str, str]) -> str:
    if not variables:
        return "(none)"
    return ", ".join(f"{k}={v[:VARIABLE_PREVIEW_CHARS]}" for k, v in variables.items())


def _preview_content(content: str) -> str:
    suffix = "..." if len(content) > CONTENT_PREVIEW_CHARS else ""
    return content[:CONTENT_PREVIEW_CHARS] + suffix


# =============================================================================
# CHAINS
# =============================================================================

def format_chain_result(result: ExecutionResult) -> str:
    """Boxed summary followed by one block per executed step"""
    output = _header("Chain Execution Results", [
        f"Chain: {result.chain_name}",
        f"Status: {result.status.value.upper()}",
        f"Duration: {result.duration_ms}ms",
        f"Steps: {result.steps_succeeded}/{len(result.results)} succeeded",
    ])

    for step in result.results:
        label = "FAIL" if step.error else "DONE"
        output += _section(f"Step {step.step} [{label}]")
        output += f"│ Prompt: {step.prompt_id} - {step.prompt_name}\n"
        output += f"│ Duration: {step.duration_ms}ms\n"
        if step.error:
            output += f"│ Error: {step.error}\n"
        else:
            output += f"│ Content: {_preview_content(step.content)}\n"
        output += _bottom() + "\n"

    return output


def format_chain_preview(
    chain: Chain,
    prompt_names: Mapping[str, str],
    variables: Optional[Mapping[str, str]] = None
) -> str:
    """Plan of a chain run: steps in execution order with merged variables"""
    output = _header("Chain Execution Preview", [
        f"Chain: {chain.name}",
        f"Steps: {len(chain.steps)}",
    ])

    for step in sorted(chain.steps, key=lambda s: s.order):
        merged = {**(variables or {}), **step.variables}
        output += _section(f"Step {step.order}")
        output += f"│ Prompt: {step.prompt_id}\n"
        output += f"│ Name: {prompt_names.get(step.prompt_id, 'Unknown')}\n"
        output += f"│ Variables: {_format_variables(merged)}\n"
        output += _bottom()

    return output


# =============================================================================
# WORKFLOWS
# =============================================================================

def format_workflow_result(result: WorkflowExecutionResult) -> str:
    """Boxed summary followed by one block per level"""
    output = _header("Workflow Execution Results", [
        f"Workflow: {result.workflow_name}",
        f"Status: {result.status.value.upper()}",
        f"Duration: {result.duration_ms}ms",
        f"Nodes: {result.nodes_succeeded}/{len(result.results)} succeeded",
    ])

    by_id = {r.node_id: r for r in result.results}
    for level_number, level in enumerate(result.execution_order, start=1):
        output += _section(f"Level {level_number} ({len(level)} nodes)")
        for node_id in level:
            node_result = by_id.get(node_id)
            if node_result is None:
                output += f"│ [SKIP] {node_id}\n"
                continue

            label = "FAIL" if node_result.error else "DONE"
            output += f"│ [{label}] {node_result.node_id}: {node_result.prompt_name}\n"
            if node_result.error:
                output += f"│       Error: {node_result.error}\n"
            output += f"│       Duration: {node_result.duration_ms}ms\n"
            if node_result.inputs_from:
                output += f"│       Inputs: {', '.join(node_result.inputs_from)}\n"
        output += _bottom() + "\n"

    return output


def format_workflow_preview(
    workflow: Workflow,
    levels: List[List[str]],
    prompt_names: Mapping[str, str],
    variables: Optional[Mapping[str, str]] = None
) -> str:
    """Plan of a workflow run, grouped by parallel execution stage"""
    output = _header("Workflow Execution Preview", [
        f"Workflow: {workflow.name}",
        f"Nodes: {len(workflow.nodes)}",
        f"Levels: {len(levels)} (parallel execution stages)",
    ])

    node_map = {node.id: node for node in workflow.nodes}
    for level_number, level in enumerate(levels, start=1):
        output += _section(f"Level {level_number} ({len(level)} nodes, can run in parallel)")
        for node_id in level:
            node = node_map[node_id]
            output += "│\n"
            output += f"│ Node: {node.id}\n"
            output += f"│   Prompt: {node.prompt_id}\n"
            output += f"│   Name: {prompt_names.get(node.prompt_id, 'Unknown')}\n"
            if node.dependencies:
                output += f"│   Depends on: {', '.join(node.dependencies)}\n"
            else:
                output += "│   Depends on: (none - can start immediately)\n"
            merged = {**(variables or {}), **node.variables}
            output += f"│   Variables: {_format_variables(merged)}\n"
        output += "│\n"
        output += _bottom() + "\n"

    return output


def _dot_escape(text: str) -> str:
    return text.replace('"', '\\"')


def generate_dag(workflow: Workflow, prompt_names: Optional[Mapping[str, str]] = None) -> str:
    """Graphviz DOT source with one `dependency -> dependent` edge per dependency"""
    names = prompt_names or {}
    lines = [
        "digraph Workflow {",
        "  rankdir=LR;",
        "  node [shape=box, style=rounded];",
        "",
    ]

    for node in workflow.nodes:
        node_id = _dot_escape(node.id)
        label = _dot_escape(names.get(node.prompt_id, node.prompt_id))
        lines.append(f'  "{node_id}" [label="{node_id}\\n{label}"];')

    lines.append("")

    for node in workflow.nodes:
        for dep in node.dependencies:
            lines.append(f'  "{_dot_escape(dep)}" -> "{_dot_escape(node.id)}";')

    lines.append("}")
    return "\n".join(lines) + "\n"


# =============================================================================
# EXPORT / IMPORT
# =============================================================================

def export_result(result: Union[ExecutionResult, WorkflowExecutionResult]) -> str:
    """Serialize a result to indented JSON"""
    return result.model_dump_json(indent=2)


def import_chain_result(data: Union[str, bytes, Dict]) -> ExecutionResult:
    if isinstance(data, dict):
        return ExecutionResult.model_validate(data)
    return ExecutionResult.model_validate_json(data)


def import_workflow_result(data: Union[str, bytes, Dict]) -> WorkflowExecutionResult:
    if isinstance(data, dict):
        return WorkflowExecutionResult.model_validate(data)
    return WorkflowExecutionResult.model_validate_json(data)
