# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Prompt library access: models, repositories and the resolver.
"""

from promptflow.prompts.models import Prompt, PromptMetadata
from promptflow.prompts.repository import (
    PromptRepository,
    InMemoryPromptRepository,
    PromptIndexRepository,
)
from promptflow.prompts.resolver import PromptResolver, strip_front_matter

__all__ = [
    "Prompt",
    "PromptMetadata",
    "PromptRepository",
    "InMemoryPromptRepository",
    "PromptIndexRepository",
    "PromptResolver",
    "strip_front_matter",
]
