# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Chain and Workflow Validation

Structural checks run before any execution, plus DAG leveling using
Kahn's algorithm and DFS cycle detection.
"""

from collections import Counter
from typing import Dict, List, Optional, Sequence, Set

from promptflow.engine.exceptions import CycleDetectedError
from promptflow.engine.models import Chain, ValidationResult, Workflow, WorkflowNode
from promptflow.engine.substitution import synthetic_variable_names
from promptflow.prompts.resolver import PromptResolver


async def validate_chain(chain: Chain, resolver: PromptResolver) -> ValidationResult:
    """
    Validate a chain before execution.

    Checks:
    - at least one step
    - no duplicate order values
    - every order is positive
    - every prompt resolves
    """
    errors: List[str] = []

    # 1. Empty chain check
    if not chain.steps:
        errors.append("Chain must have at least one step")

    # 2. Duplicate order values
    orders = Counter(step.order for step in chain.steps)
    duplicates = sorted(order for order, count in orders.items() if count > 1)
    if duplicates:
        errors.append(f"Duplicate step order values detected: {duplicates}")

    # 3. Per-step checks
    for step in chain.steps:
        if await resolver.resolve(step.prompt_id) is None:
            errors.append(f"Step {step.order}: Prompt '{step.prompt_id}' not found")

        if step.order <= 0:
            errors.append(f"Step order must be positive, got {step.order}")

    return ValidationResult(valid=not errors, errors=errors)


async def validate_workflow(workflow: Workflow, resolver: PromptResolver) -> ValidationResult:
    """
    Validate a workflow before execution.

    Checks:
    - at least one node
    - unique node ids
    - every prompt resolves
    - every dependency exists
    - no self-dependency
    - no cycle

    Warns when a node declares a variable that shadows the synthetic output
    of one of its dependencies (the declared value wins at render time).
    """
    errors: List[str] = []
    warnings: List[str] = []

    # 1. Empty workflow check
    if not workflow.nodes:
        errors.append("Workflow must have at least one node")

    # 2. Duplicate node IDs
    id_counts = Counter(node.id for node in workflow.nodes)
    duplicates = sorted(node_id for node_id, count in id_counts.items() if count > 1)
    if duplicates:
        errors.append(f"Duplicate node IDs detected: {duplicates}")

    # 3. Per-node checks
    node_ids = set(id_counts)
    for node in workflow.nodes:
        if await resolver.resolve(node.prompt_id) is None:
            errors.append(f"Node '{node.id}': Prompt '{node.prompt_id}' not found")

        for dep in node.dependencies:
            if dep == node.id:
                errors.append(f"Node '{node.id}' cannot depend on itself")
            elif dep not in node_ids:
                errors.append(f"Node '{node.id}': Dependency '{dep}' not found in workflow")
            else:
                shadowed = [name for name in synthetic_variable_names(dep) if name in node.variables]
                if shadowed:
                    warnings.append(
                        f"Node '{node.id}': variable(s) {shadowed} override the output of dependency '{dep}'"
                    )

    # 4. Cycle detection (self-dependencies are reported above)
    if has_cycle(workflow.nodes, ignore_self_loops=True):
        errors.append("Workflow contains circular dependencies")

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)


def has_cycle(nodes: Sequence[WorkflowNode], ignore_self_loops: bool = False) -> bool:
    """
    Detect cycles with a depth-first search over dependency edges.

    A node reached again while it is still on the recursion stack closes a
    cycle. Dependencies naming unknown nodes are skipped.
    """
    graph: Dict[str, List[str]] = {}
    for node in nodes:
        deps = graph.setdefault(node.id, [])
        deps.extend(
            dep for dep in node.dependencies
            if not (ignore_self_loops and dep == node.id)
        )

    visited: Set[str] = set()
    on_stack: Set[str] = set()

    for root in graph:
        if root in visited:
            continue

        # Iterative DFS; each frame is (node, iterator over its dependencies)
        visited.add(root)
        on_stack.add(root)
        stack = [(root, iter(graph[root]))]

        while stack:
            node_id, deps = stack[-1]
            advanced = False
            for dep in deps:
                if dep not in graph:
                    continue
                if dep in on_stack:
                    return True
                if dep not in visited:
                    visited.add(dep)
                    on_stack.add(dep)
                    stack.append((dep, iter(graph[dep])))
                    advanced = True
                    break
            if not advanced:
                on_stack.discard(node_id)
                stack.pop()

    return False


def topological_levels(nodes: Sequence[WorkflowNode]) -> List[List[str]]:
    """
    Group nodes into execution levels using Kahn's algorithm.

    Level 0 holds every node without dependencies. When a level completes,
    each dependent's in-degree drops; nodes reaching zero form the next
    level. Nodes within a level never depend on each other. Within a level,
    nodes keep their declaration order.

    Raises CycleDetectedError if some nodes can never be placed.
    """
    position = {}
    for index, node in enumerate(nodes):
        position.setdefault(node.id, index)

    in_degree: Dict[str, int] = {}
    dependents: Dict[str, List[str]] = {node_id: [] for node_id in position}

    for node in nodes:
        if node.id in in_degree:
            continue  # Duplicate id; the first declaration wins
        deps = {dep for dep in node.dependencies if dep in position}
        in_degree[node.id] = len(deps)
        for dep in deps:
            dependents[dep].append(node.id)

    levels: List[List[str]] = []
    current = [node_id for node_id, degree in in_degree.items() if degree == 0]
    placed = 0

    while current:
        current.sort(key=position.__getitem__)
        levels.append(current)
        placed += len(current)

        next_level = []
        for node_id in current:
            for dependent in dependents[node_id]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    next_level.append(dependent)
        current = next_level

    if placed != len(position):
        unresolved = [node_id for node_id, degree in in_degree.items() if degree > 0]
        raise CycleDetectedError(unresolved)

    return levels


def compute_levels(nodes: Sequence[WorkflowNode]) -> Optional[List[List[str]]]:
    """Like topological_levels, but returns None instead of raising on a cycle"""
    try:
        return topological_levels(nodes)
    except CycleDetectedError:
        return None
