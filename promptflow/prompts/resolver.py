# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Prompt Resolution

Turns a step's prompt reference into a prompt and its renderable content.

Lookup is two-phase:
1. exact id match
2. case-insensitive prefix match against the full id, or against the part
   after the first ':' (e.g. "ARCH" finds "ARCH-001:architect-review",
   "archi" finds "X-9:architect"). First match in repository order wins.

Phase 2 is a convenience for short mnemonic codes and can be disabled
without touching the executors.
"""

from typing import Optional

from promptflow.prompts.models import Prompt
from promptflow.prompts.repository import PromptRepository

FRONT_MATTER_DELIMITER = "---"


def strip_front_matter(content: str) -> str:
    """
    Remove a leading `---` ... `---` block.

    The block is only stripped when a closing delimiter line exists;
    otherwise the text is returned unchanged.
    """
    if not content.startswith(FRONT_MATTER_DELIMITER + "\n"):
        return content

    closing = "\n" + FRONT_MATTER_DELIMITER + "\n"
    end = content.find(closing, len(FRONT_MATTER_DELIMITER))
    if end == -1:
        return content
    return content[end + len(closing):]


class PromptResolver:
    """Resolves prompt references against a read-only repository"""

    def __init__(self, repository: PromptRepository, prefix_matching: bool = True):
        self.repository = repository
        self.prefix_matching = prefix_matching

    @classmethod
    def from_config(cls, repository: PromptRepository, config) -> "PromptResolver":
        """Resolver honouring `prompts.prefix_matching` from the engine config"""
        return cls(repository, prefix_matching=config.prefix_matching)

    async def resolve(self, prompt_id: str) -> Optional[Prompt]:
        """Return the prompt for `prompt_id`, or None when nothing matches."""
        prompt = await self.repository.get(prompt_id)
        if prompt is not None or not self.prefix_matching:
            return prompt
        return await self._match_prefix(prompt_id)

    async def _match_prefix(self, prompt_id: str) -> Optional[Prompt]:
        needle = prompt_id.strip().lower()
        if not needle:
            return None

        for prompt in await self.repository.list_prompts():
            candidate = prompt.id.lower()
            if candidate.startswith(needle):
                return prompt
            _, sep, short = candidate.partition(":")
            if sep and short.startswith(needle):
                return prompt
        return None

    async def get_content(self, prompt: Prompt) -> str:
        """Raw prompt text with front matter stripped."""
        raw = await self.repository.read_content(prompt)
        return strip_front_matter(raw)
