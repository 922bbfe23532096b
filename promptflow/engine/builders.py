# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Definition builders for the common shapes: a straight chain, a linear
workflow and a fully parallel workflow.
"""

import time
from typing import List, Optional

from promptflow.engine.models import Chain, ChainStep, Workflow, WorkflowNode


def _timestamp_ms() -> int:
    return int(time.time() * 1000)


def create_simple_chain(name: str, description: Optional[str], prompt_ids: List[str]) -> Chain:
    """Chain running `prompt_ids` in list order (orders 1..n)"""
    return Chain(
        id=f"chain_{_timestamp_ms()}",
        name=name,
        description=description,
        steps=[
            ChainStep(prompt_id=prompt_id, order=index)
            for index, prompt_id in enumerate(prompt_ids, start=1)
        ],
    )


def create_sequential_workflow(name: str, description: Optional[str], prompt_ids: List[str]) -> Workflow:
    """node_1 -> node_2 -> ... each node depending on the previous one"""
    nodes = []
    previous = None
    for index, prompt_id in enumerate(prompt_ids, start=1):
        node_id = f"node_{index}"
        nodes.append(WorkflowNode(
            id=node_id,
            prompt_id=prompt_id,
            dependencies=[previous] if previous else [],
        ))
        previous = node_id

    return Workflow(id=f"workflow_{_timestamp_ms()}", name=name, description=description, nodes=nodes)


def create_parallel_workflow(name: str, description: Optional[str], prompt_ids: List[str]) -> Workflow:
    """Every node independent, so all of them land in level 0"""
    nodes = [
        WorkflowNode(id=f"node_{index}", prompt_id=prompt_id)
        for index, prompt_id in enumerate(prompt_ids, start=1)
    ]
    return Workflow(id=f"workflow_{_timestamp_ms()}", name=name, description=description, nodes=nodes)
