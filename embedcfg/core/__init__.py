from .config_model import EmbeddedPythonConfig, RawAllocator, RunMode, RunModeKind, TerminfoKind, TerminfoResolution
from .config_loader import config_from_dict, load_config

__all__ = [
  "EmbeddedPythonConfig",
  "RawAllocator",
  "RunMode",
  "RunModeKind",
  "TerminfoKind",
  "TerminfoResolution",
  "config_from_dict",
  "load_config",
]
