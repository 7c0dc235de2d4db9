from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar, Union

import yaml  # type: ignore
from pydantic import BaseModel, ConfigDict, ValidationError

from transmute.utils.env import substitute_env_vars

ModelT = TypeVar("ModelT", bound=BaseModel)


class TransmuteBaseConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", validate_default=True)


class ConfigFileError(Exception):
    """Raised when a configuration file cannot be read or validated."""

    def __init__(self, file_path: Path, bad_fields: List[str], message: str):
        super().__init__(message)
        self.file_path = file_path
        self.bad_fields = bad_fields


def loc_to_dot_sep(loc: Tuple[Union[str, int], ...]) -> str:
    path = ""
    for i, x in enumerate(loc):
        if isinstance(x, str):
            if i > 0:
                path += "."
            path += x
        elif isinstance(x, int):
            path += f"[{x}]"
        else:
            raise TypeError("Unexpected type")
    return path


def convert_errors(e: ValidationError) -> List[Dict[str, Any]]:
    new_errors: List[Dict[str, Any]] = e.errors()  # type: ignore
    for error in new_errors:
        error["loc"] = loc_to_dot_sep(error["loc"])
    return new_errors


def load_model_from_file(
    model: Type[ModelT], file_path: Path, yaml_path: Optional[str] = None
) -> ModelT:
    """
    Load a pydantic model from a YAML file.

    `yaml_path` selects a nested section using dot separated keys.
    `{{ env.VAR }}` placeholders are replaced with environment values.
    """
    with open(file_path, "r", encoding="utf-8") as f:
        contents = yaml.safe_load(f) or {}

    if yaml_path is not None:
        for part in yaml_path.split("."):
            contents = contents.get(part, {}) if isinstance(contents, dict) else {}

    contents = substitute_env_vars(contents)

    try:
        return model.model_validate(contents)
    except ValidationError as e:
        bad_fields = [error["loc"] for error in convert_errors(e)]
        raise ConfigFileError(
            file_path,
            bad_fields,
            f"Invalid config file at {file_path}. Check the fields {bad_fields}.\n{e}",
        ) from e
