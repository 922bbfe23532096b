# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Engine Models

Pydantic models for chain and workflow definitions and their execution
results. Results are frozen: once the executor returns them they are never
mutated.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 with a Z suffix"""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class ExecutionStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    PARTIAL = "partial"


# =============================================================================
# DEFINITIONS
# =============================================================================

class ChainStep(BaseModel):
    """One step of a chain"""
    prompt_id: str
    order: int
    variables: Dict[str, str] = Field(default_factory=dict)
    continue_on_error: bool = False

    @field_validator("variables", mode="before")
    @classmethod
    def none_as_no_variables(cls, value):
        return {} if value is None else value


class Chain(BaseModel):
    """Ordered list of prompt steps executed strictly one after another"""
    id: str
    name: str
    description: Optional[str] = None
    steps: List[ChainStep] = Field(default_factory=list)
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)
    last_run: Optional[str] = None


class WorkflowNode(BaseModel):
    """One node of a workflow DAG"""
    id: str
    prompt_id: str
    dependencies: List[str] = Field(default_factory=list)
    variables: Dict[str, str] = Field(default_factory=dict)
    continue_on_error: bool = False

    @field_validator("variables", mode="before")
    @classmethod
    def none_as_no_variables(cls, value):
        return {} if value is None else value

    @field_validator("dependencies", mode="before")
    @classmethod
    def none_as_no_dependencies(cls, value):
        return [] if value is None else value


class Workflow(BaseModel):
    """DAG of prompt nodes executed level by level"""
    id: str
    name: str
    description: Optional[str] = None
    nodes: List[WorkflowNode] = Field(default_factory=list)
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)


# =============================================================================
# VALIDATION
# =============================================================================

class ValidationResult(BaseModel):
    """Outcome of a structural check; never raised, always returned"""
    valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class PreviewResult(BaseModel):
    """Dry-run output: validation outcome plus a rendered plan"""
    valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    preview: str = ""


# =============================================================================
# RESULTS
# =============================================================================

class StepResult(BaseModel):
    """Result of one chain step"""
    model_config = ConfigDict(frozen=True)

    step: int  # The step's order value
    prompt_id: str
    prompt_name: str = "Unknown"
    content: str = ""
    variables_used: Dict[str, str] = Field(default_factory=dict)
    error: Optional[str] = None
    duration_ms: int = 0
    started_at: str
    completed_at: str

    @property
    def succeeded(self) -> bool:
        return self.error is None


class NodeResult(BaseModel):
    """Result of one workflow node"""
    model_config = ConfigDict(frozen=True)

    node_id: str
    prompt_id: str
    prompt_name: str = "Unknown"
    content: str = ""
    variables_used: Dict[str, str] = Field(default_factory=dict)
    inputs_from: List[str] = Field(default_factory=list)
    error: Optional[str] = None
    duration_ms: int = 0
    started_at: str
    completed_at: str

    @property
    def succeeded(self) -> bool:
        return self.error is None


class ExecutionResult(BaseModel):
    """Chain execution report"""
    model_config = ConfigDict(frozen=True)

    chain_id: str
    chain_name: str
    status: ExecutionStatus
    results: List[StepResult] = Field(default_factory=list)
    started_at: str
    completed_at: Optional[str] = None
    duration_ms: int = 0
    steps_succeeded: int = 0
    steps_failed: int = 0
    used_prompt_ids: List[str] = Field(default_factory=list)


class WorkflowExecutionResult(BaseModel):
    """Workflow execution report"""
    model_config = ConfigDict(frozen=True)

    workflow_id: str
    workflow_name: str
    status: ExecutionStatus
    results: List[NodeResult] = Field(default_factory=list)
    started_at: str
    completed_at: Optional[str] = None
    duration_ms: int = 0
    nodes_succeeded: int = 0
    nodes_failed: int = 0
    execution_order: List[List[str]] = Field(default_factory=list)
    used_prompt_ids: List[str] = Field(default_factory=list)

    def get_result(self, node_id: str) -> Optional[NodeResult]:
        return next((r for r in self.results if r.node_id == node_id), None)
