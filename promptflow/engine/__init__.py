# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Chain executor and workflow (DAG) engine.
"""

from promptflow.engine.models import (
    Chain,
    ChainStep,
    ExecutionResult,
    ExecutionStatus,
    NodeResult,
    PreviewResult,
    StepResult,
    ValidationResult,
    Workflow,
    WorkflowExecutionResult,
    WorkflowNode,
)
from promptflow.engine.exceptions import (
    ChainValidationError,
    CycleDetectedError,
    ExecutionAbort,
    PromptResolutionError,
    WorkflowValidationError,
)
from promptflow.engine.observer import CallbackObserver, ExecutionObserver
from promptflow.engine.substitution import substitute, synthetic_variable_names
from promptflow.engine.validation import (
    compute_levels,
    has_cycle,
    topological_levels,
    validate_chain,
    validate_workflow,
)
from promptflow.engine.chain_executor import ChainExecutor
from promptflow.engine.workflow_executor import WorkflowExecutor

__all__ = [
    "Chain",
    "ChainStep",
    "ExecutionResult",
    "ExecutionStatus",
    "NodeResult",
    "PreviewResult",
    "StepResult",
    "ValidationResult",
    "Workflow",
    "WorkflowExecutionResult",
    "WorkflowNode",
    "ChainValidationError",
    "CycleDetectedError",
    "ExecutionAbort",
    "PromptResolutionError",
    "WorkflowValidationError",
    "CallbackObserver",
    "ExecutionObserver",
    "substitute",
    "synthetic_variable_names",
    "compute_levels",
    "has_cycle",
    "topological_levels",
    "validate_chain",
    "validate_workflow",
    "ChainExecutor",
    "WorkflowExecutor",
]
