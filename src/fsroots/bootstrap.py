"""Bootstrap - build the tool executor from settings.

Resolves the allowed roots once, configures logging, and wires the
sandbox, file tools and executor together.
"""

from typing import Optional

import structlog

from fsroots.config import Settings, load_settings
from fsroots.infrastructure.storage.file_tools import FileTools
from fsroots.infrastructure.storage.path_guard import PathSandbox
from fsroots.kernel.tools.tool_contract import supported_tool_names
from fsroots.kernel.tools.tool_executor import ToolExecutor

logger = structlog.get_logger()


def bootstrap(settings: Optional[Settings] = None) -> ToolExecutor:
    """Initialize fsroots and return a ready executor.

    Raises:
        ConfigurationError: an allowed directory is missing or not a directory.
    """
    settings = settings or load_settings()
    settings.setup_logging()

    roots = settings.allowed_roots()
    logger.info(
        "bootstrapping_fsroots",
        roots=list(roots),
        authentication=settings.enable_auth,
    )

    file_tools = FileTools(
        PathSandbox(roots),
        fsync=settings.io_fsync,
        auth_enabled=settings.enable_auth,
    )
    executor = ToolExecutor(file_tools, auth_required=settings.enable_auth)

    logger.info("bootstrap_complete", tools=len(supported_tool_names()))
    return executor
