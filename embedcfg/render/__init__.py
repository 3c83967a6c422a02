from .emitter import format_default_python_config, write_default_python_config
from .renderer import bytes_warning_case, derive_python_config, optimization_case

__all__ = [
    "bytes_warning_case",
    "derive_python_config",
    "format_default_python_config",
    "optimization_case",
    "write_default_python_config",
]
