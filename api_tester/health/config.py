"""
Health configuration - Loads and validates API test configuration.

Two kinds of files are read:
- config.json: global settings (Better Uptime notifier)
- configs/*.json: one API test configuration per file
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


# Global configuration structure
# {
#   "betteruptime": {
#     "token": Optional[str],          # prefer the environment variable
#     "token_env": Optional[str],      # default: BETTERUPTIME_TOKEN
#     "heartbeat": Optional[str],
#     "create_incident": Optional[bool],
#     "create_grouped_incident": Optional[bool],
#     "incident_options": Optional[Dict[str, Any]]
#   }
# }
#
# Test configuration structure
# {
#   "name": str,
#   "base_url": str,
#   "request_jwt": Optional[{"endpoint": str, "body": Optional[dict]}],
#   "default_options": Optional[CheckOptions],
#   "controllers": {controller: CheckOptions}
# }

DEFAULT_TOKEN_ENV = "BETTERUPTIME_TOKEN"

CHECK_OPTION_KEYS = (
    "user_id",
    "check_data",
    "check_status",
    "check_status_code",
    "check_execution_time",
    "check_checksum",
    "check_response_body",
    "check_length",
    "check_object_name",
    "check_object_properties",
)


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load the global configuration from a JSON file.

    Args:
        config_path: Path to config file. If None, looks for config.json in the
                     working directory or falls back to config.example.json

    Returns:
        Validated global configuration (empty dict if no file was found)

    Raises:
        FileNotFoundError: If an explicit config_path does not exist
        ValueError: If config is invalid
    """
    if config_path is None:
        json_path = Path.cwd() / "config.json"
        example_json = Path.cwd() / "config.example.json"

        if json_path.exists():
            config_path = str(json_path)
        elif example_json.exists():
            config_path = str(example_json)
            logger.warning(
                "Using example config file: %s. "
                "Create config.json for production.",
                example_json,
            )
        else:
            logger.warning(
                "Config file not found: %s. Running without notifier.", json_path
            )
            return {}

    data = _read_json(Path(config_path))
    if not isinstance(data, dict):
        raise ValueError(f"Config must be a dict: {config_path}")

    validated: Dict[str, Any] = {}
    if data.get("betteruptime") is not None:
        validated["betteruptime"] = _validate_betteruptime_config(
            data["betteruptime"]
        )

    logger.info("Loaded global config from %s", config_path)
    return validated


def load_test_configs(
    configs_dir: Optional[str] = None,
) -> List[Tuple[str, Dict[str, Any]]]:
    """
    Load every API test configuration from a directory.

    Args:
        configs_dir: Directory holding *.json test configs. If None, uses
                     configs/ in the working directory

    Returns:
        List of (file name, validated config) in file name order

    Raises:
        FileNotFoundError: If the directory does not exist
    """
    directory = Path(configs_dir) if configs_dir else Path.cwd() / "configs"
    if not directory.is_dir():
        raise FileNotFoundError(f"Configs directory not found: {directory}")

    test_configs: List[Tuple[str, Dict[str, Any]]] = []
    for path in sorted(directory.iterdir()):
        if not path.is_file():
            continue
        if path.suffix != ".json":
            logger.warning("Unsupported config file found in configs: %s", path.name)
            continue

        try:
            test_configs.append((path.name, _validate_test_config(_read_json(path))))
        except ValueError as e:
            logger.error("Invalid test config %s: %s", path.name, e)
            continue

    logger.info(
        "Loaded %d test configs from %s", len(test_configs), directory
    )
    return test_configs


def merge_options(
    defaults: Dict[str, Any], overrides: Optional[Dict[str, Any]]
) -> Dict[str, Any]:
    """
    Merge default check options with controller options.

    Args:
        defaults: Options shared by every controller
        overrides: Controller specific options (win on conflict)

    Returns:
        New dict with the effective options
    """
    return {**(defaults or {}), **(overrides or {})}


def _read_json(path: Path) -> Any:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in config file {path}: {e}")


def _validate_betteruptime_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate the Better Uptime section and resolve its token.

    Args:
        config: Raw betteruptime section

    Returns:
        Validated section, "token" resolved from the environment if possible

    Raises:
        ValueError: If the section is invalid
    """
    if not isinstance(config, dict):
        raise ValueError("Field 'betteruptime' must be a dict")

    token_env = config.get("token_env", DEFAULT_TOKEN_ENV)
    token = os.environ.get(token_env)
    if config.get("token"):
        logger.warning(
            "Betteruptime token in config is not recommended, use %s instead",
            token_env,
        )
        token = token or config["token"]

    validated = {
        "token": token,
        "heartbeat": config.get("heartbeat"),
        "create_incident": config.get("create_incident", False),
        "create_grouped_incident": config.get("create_grouped_incident", False),
        "incident_options": config.get("incident_options", {}),
    }

    if validated["heartbeat"] is not None and not isinstance(
        validated["heartbeat"], str
    ):
        raise ValueError("Field 'betteruptime.heartbeat' must be a string")
    if not isinstance(validated["create_incident"], bool):
        raise ValueError("Field 'betteruptime.create_incident' must be a bool")
    if not isinstance(validated["incident_options"], dict):
        raise ValueError("Field 'betteruptime.incident_options' must be a dict")

    return validated


def _validate_test_config(config: Any) -> Dict[str, Any]:
    """
    Validate a single API test configuration.

    Args:
        config: Raw configuration

    Returns:
        Validated configuration dict

    Raises:
        ValueError: If config is invalid
    """
    if not isinstance(config, dict):
        raise ValueError("Test config must be a dict")

    for field in ("name", "base_url"):
        if field not in config:
            raise ValueError(f"Missing required field '{field}'")
        if not isinstance(config[field], str):
            raise ValueError(f"Field '{field}' must be a string")

    name = config["name"]
    controllers = config.get("controllers")
    if not isinstance(controllers, dict):
        raise ValueError(f"Field 'controllers' must be a dict for test: {name}")

    validated = {
        "name": name,
        "base_url": config["base_url"].rstrip("/"),
        "request_jwt": config.get("request_jwt"),
        "default_options": _validate_options(
            name, "default_options", config.get("default_options", {})
        ),
        "controllers": {
            controller: _validate_options(name, controller, options or {})
            for controller, options in controllers.items()
        },
    }

    request_jwt = validated["request_jwt"]
    if request_jwt is not None:
        if not isinstance(request_jwt, dict):
            raise ValueError(f"Field 'request_jwt' must be a dict for test: {name}")
        if not isinstance(request_jwt.get("endpoint"), str):
            raise ValueError(
                f"Field 'request_jwt.endpoint' must be a string for test: {name}"
            )
        if request_jwt.get("body") is not None and not isinstance(
            request_jwt["body"], dict
        ):
            raise ValueError(
                f"Field 'request_jwt.body' must be a dict for test: {name}"
            )

    return validated


def _validate_options(name: str, label: str, options: Any) -> Dict[str, Any]:
    """
    Validate one set of check options.

    Args:
        name: Test name (for error messages)
        label: "default_options" or the controller name
        options: Raw options

    Returns:
        The options dict

    Raises:
        ValueError: If an option has the wrong type
    """
    if not isinstance(options, dict):
        raise ValueError(f"Options for '{label}' must be a dict for test: {name}")

    for key in options:
        if key not in CHECK_OPTION_KEYS:
            logger.warning("Unknown option '%s' for '%s' in test: %s", key, label, name)

    properties = options.get("check_object_properties")
    if properties is not None and (
        not isinstance(properties, list)
        or not all(isinstance(p, str) for p in properties)
    ):
        raise ValueError(
            f"Field 'check_object_properties' must be a list of strings "
            f"for '{label}' in test: {name}"
        )

    for key in ("check_length", "check_status_code"):
        value = options.get(key)
        if value is not None and (
            isinstance(value, bool) or not isinstance(value, int)
        ):
            raise ValueError(
                f"Field '{key}' must be an int for '{label}' in test: {name}"
            )

    execution_time = options.get("check_execution_time")
    if execution_time is not None and (
        isinstance(execution_time, bool)
        or not isinstance(execution_time, (int, float))
    ):
        raise ValueError(
            f"Field 'check_execution_time' must be a number "
            f"for '{label}' in test: {name}"
        )

    return options
