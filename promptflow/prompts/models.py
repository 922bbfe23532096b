# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Prompt Models

Read-only view of a prompt library entry.
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class PromptMetadata(BaseModel):
    """Front-matter derived metadata carried in the library index"""
    model_config = ConfigDict(extra="allow")

    type: Optional[str] = None
    role: Optional[str] = None
    tags: Optional[str] = None
    tags_list: List[str] = Field(default_factory=list)
    priority: Optional[str] = None
    when_to_use: Optional[str] = None
    description: Optional[str] = None
    title: Optional[str] = None


class Prompt(BaseModel):
    """A named, addressable unit of reusable text"""
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    name: str
    category: Optional[str] = None
    file_id: Optional[str] = None
    path: Optional[str] = None  # Relative to the library root
    metadata: PromptMetadata = Field(default_factory=PromptMetadata)
    preview: Optional[str] = None
    content: Optional[str] = None  # Inline content, used instead of path when set
