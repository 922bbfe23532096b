# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Prompt Repositories

Read-only stores mapping a prompt id to its metadata and raw content.
The engine only reads through these; nothing here is ever mutated during
an execution, so a repository is safe to share between concurrent nodes.
"""

import asyncio
import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from promptflow.core.logging import get_engine_logger
from promptflow.prompts.models import Prompt

logger = get_engine_logger("prompts")


class PromptRepository(ABC):
    """Read-only prompt store."""

    @abstractmethod
    async def get(self, prompt_id: str) -> Optional[Prompt]:
        """Exact id lookup. Returns None when absent."""

    @abstractmethod
    async def list_prompts(self) -> List[Prompt]:
        """All prompts, in stable iteration order."""

    @abstractmethod
    async def read_content(self, prompt: Prompt) -> str:
        """Raw prompt text, front matter included."""


class InMemoryPromptRepository(PromptRepository):
    """Prompts held in memory with inline content"""

    def __init__(self, prompts: Iterable[Prompt] = ()):
        self._prompts: Dict[str, Prompt] = {p.id: p for p in prompts}

    async def get(self, prompt_id: str) -> Optional[Prompt]:
        return self._prompts.get(prompt_id)

    async def list_prompts(self) -> List[Prompt]:
        return list(self._prompts.values())

    async def read_content(self, prompt: Prompt) -> str:
        return prompt.content or ""


class PromptIndexRepository(PromptRepository):
    """
    Prompt library on disk, described by `.promptlib/index.json`.

    Index layout:
        {"prompts": {"<id>": {"id", "name", "path", "category", ...}}}

    Content is read from `<library_path>/<prompt.path>`. The index is loaded
    lazily; if it is missing or unreadable the next call retries.
    """

    def __init__(self, library_path: Path, index_path: Optional[Path] = None):
        self.library_path = Path(library_path)
        self.index_path = Path(index_path) if index_path else self.library_path / ".promptlib" / "index.json"
        self._prompts: Optional[Dict[str, Prompt]] = None

    @classmethod
    def from_config(cls, config) -> "PromptIndexRepository":
        return cls(Path(config.prompt_library_path), config.index_path)

    def _load_index(self) -> Optional[Dict[str, Prompt]]:
        if self._prompts is not None:
            return self._prompts

        if not self.index_path.exists():
            logger.warning(f"Prompt index not found at {self.index_path}")
            return None

        try:
            data = json.loads(self.index_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load prompt index {self.index_path}: {e}")
            return None

        prompts: Dict[str, Prompt] = {}
        for prompt_id, entry in (data.get("prompts") or {}).items():
            try:
                prompts[prompt_id] = Prompt.model_validate({**entry, "id": prompt_id})
            except PydanticValidationError as e:
                logger.warning(f"Skipping invalid index entry {prompt_id}: {e.error_count()} errors")

        logger.info(f"Loaded {len(prompts)} prompts from {self.index_path}")
        self._prompts = prompts
        return prompts

    async def get(self, prompt_id: str) -> Optional[Prompt]:
        index = self._load_index() or {}
        return index.get(prompt_id)

    async def list_prompts(self) -> List[Prompt]:
        index = self._load_index() or {}
        return list(index.values())

    @property
    def available(self) -> bool:
        return self._load_index() is not None

    async def read_content(self, prompt: Prompt) -> str:
        if prompt.content is not None:
            return prompt.content
        if not prompt.path:
            return ""

        full_path = self.library_path / prompt.path
        try:
            return await asyncio.to_thread(full_path.read_text, encoding="utf-8")
        except OSError as e:
            # Unreadable content renders as empty text
            logger.warning(f"Could not read prompt {prompt.id} from {full_path}: {e}")
            return ""
