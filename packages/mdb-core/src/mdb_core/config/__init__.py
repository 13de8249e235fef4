from .loader import (
    CONFIG_FILE_NAME,
    DEFAULT_CONFIG_TEMPLATE,
    load_config,
    merge_options,
    resolve_runtime,
)
from .models import (
    ConverterConfig,
    MdbConfig,
    RuntimeConfig,
    Task,
    TaskConfig,
)

__all__ = [
    "CONFIG_FILE_NAME",
    "ConverterConfig",
    "DEFAULT_CONFIG_TEMPLATE",
    "MdbConfig",
    "RuntimeConfig",
    "Task",
    "TaskConfig",
    "load_config",
    "merge_options",
    "resolve_runtime",
]
