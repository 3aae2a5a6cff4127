import os
import re
from pathlib import Path
from typing import Any, Dict, List, Type

import yaml
from pydantic import BaseModel, create_model

DEFAULT_CONFIG_FILE_PATH = Path(__file__).parent / 'config.yaml'

VARIABLE_PATTERN = re.compile(r'\$\{([^}]+)\}')


def load_yaml(file_path: str | Path) -> dict:
    config_path = Path(file_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file '{file_path}' does not exist.")

    with config_path.open('r') as f:
        config_data = yaml.safe_load(f)

    if not isinstance(config_data, dict):
        raise ValueError("Configuration file must contain a YAML dictionary at the root.")

    return config_data


def _lookup(dotted_name: str, root: Dict[str, Any]) -> Any:
    value = root
    for key in dotted_name.split('.'):
        if not isinstance(value, dict) or key not in value:
            raise ValueError(f"Variable '{dotted_name}' not found in configuration.")
        value = value[key]
    return value


def interpolate_config(config: Any, root: Dict[str, Any] = None, resolving: set = None) -> Any:
    """
    Replaces ``${Section.KEY}`` placeholders in string values with the value found
    at that dotted path of the root configuration.

    :param config: The (sub-)configuration to interpolate.
    :param root: The full configuration used to resolve dotted names.
    :param resolving: Names currently being resolved, used to detect cycles.
    :return: The interpolated configuration.
    """
    if root is None:
        root = config
    if resolving is None:
        resolving = set()

    if isinstance(config, dict):
        return {key: interpolate_config(value, root, resolving) for key, value in config.items()}
    if isinstance(config, list):
        return [interpolate_config(item, root, resolving) for item in config]
    if not isinstance(config, str):
        return config

    value = config
    for var in VARIABLE_PATTERN.findall(config):
        if var in resolving:
            raise ValueError(f"Circular reference detected for variable '{var}'.")
        var_value = _lookup(var, root)
        if isinstance(var_value, str) and VARIABLE_PATTERN.search(var_value):
            resolving.add(var)
            var_value = interpolate_config(var_value, root, resolving)
            resolving.remove(var)
        if not isinstance(var_value, (str, int, float)):
            raise ValueError(f"Variable '{var}' is of unsupported type {type(var_value)} for interpolation.")
        value = value.replace(f"${{{var}}}", str(var_value))
    return value


def generate_pydantic_model(model_name: str, data: Any) -> Type[BaseModel]:
    """
    Builds a pydantic model mirroring the shape of a nested configuration dict.
    Nested dicts become nested models, lists keep the type of their first item.
    """
    if not isinstance(data, dict):
        return type(data)

    fields = {}
    for key, value in data.items():
        field_name = key.replace('-', '_').replace(' ', '_')
        if isinstance(value, dict):
            fields[field_name] = (generate_pydantic_model(f"{model_name}_{key.capitalize()}", value), ...)
        elif isinstance(value, list):
            if value and isinstance(value[0], dict):
                item_model = generate_pydantic_model(f"{model_name}_{key.capitalize()}Item", value[0])
                fields[field_name] = (List[item_model], ...)
            elif value:
                fields[field_name] = (List[type(value[0])], ...)
            else:
                fields[field_name] = (List[Any], ...)
        else:
            fields[field_name] = (type(value), ...)

    return create_model(model_name, **fields)


def load_settings(file_path: str | Path = None) -> BaseModel:
    config_data = interpolate_config(load_yaml(file_path or DEFAULT_CONFIG_FILE_PATH))
    AppConfigModel = generate_pydantic_model("AppConfig", config_data)
    return AppConfigModel(**config_data)


settings = load_settings(os.getenv('CONFIG_FILE_PATH'))
