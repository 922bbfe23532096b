# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Engine Exceptions

Custom exceptions for the chain executor and workflow engine.
"""

from typing import Iterable, List

from promptflow.core.errors import ExecutionError, NotFoundError, ValidationError


class DefinitionValidationError(ValidationError):
    """Chain or workflow definition failed validation; nothing was executed"""
    kind = "Definition"

    def __init__(self, definition_id: str, errors: List[str]):
        self.definition_id = definition_id
        self.errors = list(errors)
        super().__init__(
            f"{self.kind} validation failed: {', '.join(self.errors)}",
            details={"id": definition_id, "errors": self.errors}
        )


class ChainValidationError(DefinitionValidationError):
    kind = "Chain"


class WorkflowValidationError(DefinitionValidationError):
    kind = "Workflow"


class PromptResolutionError(NotFoundError):
    """Referenced prompt could not be resolved at execution time"""
    def __init__(self, prompt_id: str):
        super().__init__("Prompt", prompt_id)
        self.prompt_id = prompt_id


class CycleDetectedError(ValidationError):
    """Dependency graph could not be fully leveled"""
    def __init__(self, unresolved: Iterable[str]):
        self.unresolved = sorted(unresolved)
        super().__init__(
            f"Workflow contains circular dependencies involving nodes: {', '.join(self.unresolved)}",
            field="dependencies"
        )


class ExecutionAbort(ExecutionError):
    """A unit without continue_on_error failed; remaining scheduling halts"""
    def __init__(self, unit_id: str, message: str, execution_id: str = None):
        self.unit_id = unit_id
        super().__init__(f"'{unit_id}' failed: {message}", execution_id=execution_id)
