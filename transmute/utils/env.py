import logging
import os
import re
from typing import Any, Optional

ENV_REFERENCE = re.compile(r"{{\s*env\.([^}\s]+)\s*}}")


def environ_get_safe_int(env_var: str, default: Optional[int] = None) -> Optional[int]:
    value = os.environ.get(env_var)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        logging.warning(f"Ignoring non integer value {value!r} for {env_var}")
        return default


def _env_value(match: "re.Match[str]") -> str:
    name = match.group(1)
    if name not in os.environ:
        raise ValueError(f"ENV var replacement {name} does not exist")
    return os.environ[name]


def substitute_env_vars(value: Any) -> Any:
    """
    Replace every {{ env.NAME }} inside strings of a loaded YAML document.

    Raises ValueError when a referenced variable is not set.
    """
    if isinstance(value, str):
        return ENV_REFERENCE.sub(_env_value, value)
    if isinstance(value, dict):
        return {key: substitute_env_vars(item) for key, item in value.items()}
    if isinstance(value, list):
        return [substitute_env_vars(item) for item in value]
    return value
