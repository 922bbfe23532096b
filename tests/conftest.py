# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Shared fixtures: an in-memory prompt library and executors wired to it.
"""

import asyncio
from typing import Iterable, List, Optional, Set

import pytest

from promptflow.core.config import EngineConfig
from promptflow.engine.chain_executor import ChainExecutor
from promptflow.engine.workflow_executor import WorkflowExecutor
from promptflow.prompts.models import Prompt
from promptflow.prompts.repository import InMemoryPromptRepository
from promptflow.prompts.resolver import PromptResolver


class TrackingPromptRepository(InMemoryPromptRepository):
    """
    Sleeps on every content read and records how many reads overlap.

    Prompts listed in `failing` pass lookup (so validation succeeds) but
    raise when their content is read, simulating content that vanished
    between validation and execution.
    """

    def __init__(self, prompts: Iterable[Prompt], delay: float = 0.01, failing: Iterable[str] = ()):
        super().__init__(prompts)
        self.delay = delay
        self.failing = set(failing)
        self.in_flight = 0
        self.peak = 0
        self.reads: List[str] = []

    async def read_content(self, prompt: Prompt) -> str:
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        self.reads.append(prompt.id)
        try:
            await asyncio.sleep(self.delay)
            if prompt.id in self.failing:
                raise OSError(f"cannot read content of {prompt.id}")
            return await super().read_content(prompt)
        finally:
            self.in_flight -= 1


class VanishingPromptRepository(InMemoryPromptRepository):
    """
    Prompts listed in `vanishing` resolve exactly once, then disappear.

    Validation sees them; the executor's own lookup finds nothing.
    """

    def __init__(self, prompts: Iterable[Prompt], vanishing: Iterable[str]):
        super().__init__(prompts)
        self.vanishing = set(vanishing)
        self.gone: Set[str] = set()

    async def get(self, prompt_id: str) -> Optional[Prompt]:
        if prompt_id in self.gone:
            return None
        prompt = await super().get(prompt_id)
        if prompt_id in self.vanishing:
            self.gone.add(prompt_id)
        return prompt

    async def list_prompts(self) -> List[Prompt]:
        return [p for p in await super().list_prompts() if p.id not in self.gone]


@pytest.fixture
def prompts():
    """Small prompt library covering both placeholder syntaxes and front matter"""
    return [
        Prompt(id="P1", name="Prompt One", content="One: {{topic}}"),
        Prompt(id="P2", name="Prompt Two", content="Two: ${topic}"),
        Prompt(id="P3", name="Prompt Three", content="Three: {{topic}} by {{author}}"),
        Prompt(id="P4", name="Prompt Four", content="Four"),
        Prompt(
            id="ARCH-001:architect-review",
            name="Architecture Review",
            category="engineering",
            content="---\ntitle: Architecture Review\n---\nReview {{code}}",
        ),
        Prompt(id="seed", name="Seed", content="Seed {{topic}}"),
        Prompt(id="left", name="Left", content="Left({{A_result}})"),
        Prompt(id="right", name="Right", content="Right(${A_output})"),
        Prompt(id="join", name="Join", content="Join [{{B_result}}] [{{C_result}}]"),
    ]


@pytest.fixture
def repository(prompts):
    """In-memory repository over the sample prompts"""
    return InMemoryPromptRepository(prompts)


@pytest.fixture
def resolver(repository, engine_config):
    """Resolver configured from the default engine config (prefix matching on)"""
    return PromptResolver.from_config(repository, engine_config)


@pytest.fixture
def engine_config():
    """Default engine configuration, independent of any YAML on disk"""
    return EngineConfig()


@pytest.fixture
def chain_executor(resolver):
    return ChainExecutor(resolver)


@pytest.fixture
def workflow_executor(resolver, engine_config):
    return WorkflowExecutor(resolver, engine_config)


@pytest.fixture
def tracking_repository_factory(prompts):
    """Build a TrackingPromptRepository over the sample prompts"""
    def factory(delay: float = 0.01, failing: Iterable[str] = ()):
        return TrackingPromptRepository(prompts, delay=delay, failing=failing)
    return factory


@pytest.fixture
def vanishing_repository_factory(prompts):
    """Build a VanishingPromptRepository over the sample prompts"""
    def factory(vanishing: Iterable[str]):
        return VanishingPromptRepository(prompts, vanishing)
    return factory
