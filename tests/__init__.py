# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Test Suite for promptflow

Structure:
- core/: config, errors and logging
- prompts/: repositories and prompt resolution
- engine/: substitution, validation, chain executor, workflow engine
"""
