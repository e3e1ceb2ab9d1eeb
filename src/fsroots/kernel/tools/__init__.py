"""Tool orchestration layer for fsroots.

Provides tool contract definitions, typed parameter models, and execution.
"""

from fsroots.kernel.tools.tool_contract import (
    ToolSpec,
    canonicalize_tool_name,
    list_tool_contracts,
    params_model,
    read_tool_names,
    supported_tool_names,
    tool_category,
    write_tool_names,
)
from fsroots.kernel.tools.tool_executor import (
    ToolExecutor,
    execute_tool,
)

__all__ = [
    # Tool contract
    "ToolSpec",
    "canonicalize_tool_name",
    "list_tool_contracts",
    "params_model",
    "read_tool_names",
    "supported_tool_names",
    "tool_category",
    "write_tool_names",
    # Tool executor
    "ToolExecutor",
    "execute_tool",
]
