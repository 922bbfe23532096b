# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Variable Substitution

Both `{{name}}` and `${name}` placeholders are honoured in the same text.
Substitution is a single regex pass: inserted values are never re-scanned,
so a value containing `{{other}}` stays literal and the output does not
depend on the order of keys in the variable map. Placeholders naming an
unknown variable are left untouched.

Dependency outputs reach a workflow node through synthetic variables in a
reserved namespace: `<dependency_id>_result` and `<dependency_id>_output`.
"""

import re
from typing import Dict, Mapping, Optional, Tuple

_PLACEHOLDER = re.compile(r"\{\{([^{}]+)\}\}|\$\{([^{}]+)\}")

RESULT_SUFFIX = "_result"
OUTPUT_SUFFIX = "_output"


def substitute(template: str, variables: Mapping[str, str]) -> str:
    """Replace every known placeholder in `template` with its value."""
    if not template or not variables:
        return template

    def replace(match: re.Match) -> str:
        name = match.group(1) if match.group(1) is not None else match.group(2)
        if name in variables:
            return str(variables[name])
        return match.group(0)

    return _PLACEHOLDER.sub(replace, template)


def synthetic_variable_names(dependency_id: str) -> Tuple[str, str]:
    """Names under which a dependency's output is exposed to its dependents"""
    return f"{dependency_id}{RESULT_SUFFIX}", f"{dependency_id}{OUTPUT_SUFFIX}"


def merge_variables(
    global_vars: Optional[Mapping[str, str]],
    local_vars: Optional[Mapping[str, str]],
    dependency_vars: Optional[Mapping[str, str]] = None
) -> Dict[str, str]:
    """
    Merge variable layers.

    Precedence, lowest to highest: global < dependency outputs < local.
    A user-declared local variable therefore always wins over a synthetic
    one with the same name.
    """
    merged: Dict[str, str] = {}
    merged.update(global_vars or {})
    merged.update(dependency_vars or {})
    merged.update(local_vars or {})
    return merged
