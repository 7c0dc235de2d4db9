import importlib
from typing import Any


def import_string(dotted_path: str) -> Any:
    """Import 'package.module.Attribute' and return the attribute."""
    module_path, _, attribute = dotted_path.rpartition(".")
    if not module_path:
        raise ImportError(f"'{dotted_path}' is not a dotted import path")

    module = importlib.import_module(module_path)
    try:
        return getattr(module, attribute)
    except AttributeError as e:
        raise ImportError(f"Module '{module_path}' has no attribute '{attribute}'") from e
