"""
routestub Configuration

Engine configuration and YAML route files.

Route file format:

    routes:
      - address: http://example.com/api
        query_params: {q: search}
        times: 2
        methods:
          get: {status: 200, body: "ok"}
      - pattern: "http://example.com/static/.*"
        response: {status: 404}
"""

import logging
import os
import re
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Dict, Any, List, Tuple, Optional
import yaml

from .errors import ConfigError, RouteFileError


logger = logging.getLogger("routestub.config")


@dataclass
class StubConfig:
    """Configuration for stubbing engine behavior."""

    # Logging
    log_level: str = "warning"

    # Isolation used by scopes that do not choose explicitly
    default_isolation: bool = False

    # Warn when a raw query string has more segments than this (0 = never)
    permutation_warning_segments: int = 8

    # Worker threads for callback-style dispatch
    async_max_workers: int = 4

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StubConfig':
        """Create config from dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def from_yaml(cls, yaml_path: str) -> 'StubConfig':
        """Load config from the top level (or a 'routestub' section) of a YAML file."""
        data = _read_yaml(yaml_path) or {}
        if not isinstance(data, dict):
            raise RouteFileError(f"Config file {yaml_path} must contain a mapping")
        return cls.from_dict(data.get('routestub', data))

    @classmethod
    def from_env(cls, env: Optional[Dict[str, str]] = None) -> 'StubConfig':
        """
        Create config from ROUTESTUB_* environment variables.

        Args:
            env: Environment mapping (defaults to os.environ)
        """
        env = env if env is not None else dict(os.environ)
        config = cls()
        if 'ROUTESTUB_LOG_LEVEL' in env:
            config.log_level = env['ROUTESTUB_LOG_LEVEL']
        if 'ROUTESTUB_ISOLATION' in env:
            config.default_isolation = env['ROUTESTUB_ISOLATION'].lower() in ('1', 'true', 'yes', 'on')
        config.permutation_warning_segments = _env_int(
            env, 'ROUTESTUB_PERMUTATION_WARNING', config.permutation_warning_segments
        )
        config.async_max_workers = _env_int(env, 'ROUTESTUB_ASYNC_WORKERS', config.async_max_workers)
        return config


def _env_int(env: Dict[str, str], name: str, default: int) -> int:
    """Integer environment value, or default (with a warning) when unset or malformed."""
    if name not in env:
        return default
    try:
        return int(env[name])
    except ValueError:
        logger.warning(f"Ignoring {name}={env[name]!r}: not an integer, using {default}")
        return default


def log_level_for(name: str) -> int:
    """
    Resolve a log level name such as "debug" to its logging constant.

    Raises:
        ConfigError: If the name is not a logging level
    """
    level = logging.getLevelName(str(name).upper())
    if not isinstance(level, int):
        raise ConfigError(f"Unknown log level: {name!r}")
    return level


_config = StubConfig.from_env()


def get_config() -> StubConfig:
    """Return the active configuration."""
    return _config


def configure(config: Optional[StubConfig] = None, **overrides) -> StubConfig:
    """
    Install a configuration process-wide and apply its log level.

    Args:
        config: Config to install (defaults to the active one)
        **overrides: Field values replacing those of config

    Returns:
        The installed config

    Raises:
        ConfigError: If the log level is unknown (the active config is kept)
    """
    global _config
    base = config or _config
    new_config = StubConfig.from_dict({**{f.name: getattr(base, f.name) for f in fields(base)}, **overrides})
    level = log_level_for(new_config.log_level)

    _config = new_config
    logging.getLogger("routestub").setLevel(level)
    return _config


def _read_yaml(yaml_path: str) -> Any:
    path = Path(yaml_path)
    try:
        with open(path, 'r') as f:
            return yaml.safe_load(f)
    except OSError as e:
        raise RouteFileError(f"Cannot read route file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise RouteFileError(f"Invalid YAML in {path}: {e}") from e


def _route_key_from_dict(route: Dict[str, Any]) -> Any:
    if 'address' in route:
        address: Any = route['address']
    elif 'pattern' in route:
        address = re.compile(route['pattern'])
    else:
        raise RouteFileError(f"Route needs an 'address' or 'pattern': {route}")

    if route.get('query_params') is not None:
        return {'address': address, 'query_params': route['query_params']}
    return address


def routes_from_dict(data: Dict[str, Any]) -> List[Tuple[Any, Any]]:
    """
    Build a route table from parsed route-file data.

    Args:
        data: Dict with a 'routes' list

    Returns:
        Route table as a list of (key, value) pairs, with static responses
    """
    if not isinstance(data, dict) or not isinstance(data.get('routes'), list):
        raise RouteFileError("Route file must contain a 'routes' list")

    table = []
    for route in data['routes']:
        if not isinstance(route, dict):
            raise RouteFileError(f"Route must be a mapping: {route!r}")
        key = _route_key_from_dict(route)

        if 'methods' in route:
            value = dict(route['methods'] or {})
            if 'times' in route:
                value['times'] = route['times']
        elif 'times' in route:
            value = {'any': route.get('response') or {}, 'times': route['times']}
        else:
            value = route.get('response') or {}

        table.append((key, value))

    return table


def load_routes_from_yaml(yaml_path: str) -> List[Tuple[Any, Any]]:
    """Load a route table from a YAML route file."""
    return routes_from_dict(_read_yaml(yaml_path))
