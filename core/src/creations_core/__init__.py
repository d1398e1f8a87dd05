from creations_core.config import CoreConfig, load_core_config
from creations_core.home import CreationsPaths, ensure_creations_layout, resolve_creations_home

__version__ = "0.1.0"

__all__ = [
    "CoreConfig",
    "CreationsPaths",
    "__version__",
    "ensure_creations_layout",
    "load_core_config",
    "resolve_creations_home",
]
