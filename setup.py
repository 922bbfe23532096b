# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Setup configuration for the promptflow chain and workflow engine
"""

from setuptools import setup, find_packages

setup(
    name="promptflow-engine",
    version="1.0.0",
    description="Prompt chain and DAG workflow execution engine",
    author="Jason Cafarelli",
    packages=find_packages(include=["promptflow", "promptflow.*"]),
    python_requires=">=3.9",
    install_requires=[
        "pydantic>=2.0",
        "PyYAML>=6.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ]
    },
)
