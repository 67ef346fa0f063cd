"""Layered settings loading with environment substitution and overrides.

Settings are plain nested dictionaries assembled from YAML files, JSON files
or dicts (later sources win), then processed in two passes:

1. Variable substitution in values:
   - ``${VAR}``: replaced with environment variable VAR, error if not found
   - ``${VAR:default}``: VAR, or ``default`` when unset
   - ``${VAR:-default}``: same as above (bash-style)
   A value consisting of a single reference is converted to bool/int/float
   where possible; references embedded in longer strings stay strings.

2. Environment overrides of the form ``ARTIFORGE_<SECTION>__<KEY>[__<KEY>...]``
   replace individual leaves, e.g. ``ARTIFORGE_AI__DEFAULT_PROVIDER=openai``
   sets ``ai.default_provider``. Segments match existing keys with ``-`` and
   ``_`` treated alike.

Example:
    ```python
    from artiforge_common.settings import Settings

    settings = Settings.load("artiforge.yaml", {"ai": {"log_dir": "/tmp/logs"}})
    provider = settings.get("ai.default_provider", "anthropic")
    openai_cfg = settings.section("ai.providers.openai")
    ```
"""

from __future__ import annotations

import copy
import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Union

import yaml

from artiforge_common.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

SettingsSource = Union[str, Path, Mapping[str, Any]]

_MISSING = object()

VAR_PATTERN = re.compile(r'\$\{([^}:]+)(?::(-)?([^}]*))?\}')


def _convert_type(value: str) -> Union[str, int, float, bool]:
    lowered = value.lower()
    if lowered in ('true', 'yes'):
        return True
    if lowered in ('false', 'no'):
        return False
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        return value


def _resolve(match: re.Match, environ: Mapping[str, str]) -> str:
    var_name = match.group(1)
    has_default = match.group(2) is not None or match.group(3) is not None
    if var_name in environ:
        return environ[var_name]
    if has_default:
        return match.group(3) or ""
    raise ConfigurationError(
        f"Environment variable '{var_name}' not found",
        context={"variable": var_name},
    )


def substitute_variables(value: Any, environ: Mapping[str, str] | None = None) -> Any:
    """Recursively substitute ``${VAR}`` references in a value.

    Args:
        value: String, dict, list or scalar to process.
        environ: Variable source, defaults to ``os.environ``.

    Returns:
        The value with references replaced. Keys are never substituted.

    Raises:
        ConfigurationError: If a reference without default names an unset variable.
    """
    env = os.environ if environ is None else environ
    if isinstance(value, str):
        match = VAR_PATTERN.fullmatch(value)
        if match:
            return _convert_type(_resolve(match, env))
        return VAR_PATTERN.sub(lambda m: _resolve(m, env), value)
    if isinstance(value, dict):
        return {key: substitute_variables(item, env) for key, item in value.items()}
    if isinstance(value, list):
        return [substitute_variables(item, env) for item in value]
    return value


def _read_source(source: SettingsSource) -> Dict[str, Any]:
    if isinstance(source, Mapping):
        return copy.deepcopy(dict(source))

    path = Path(source)
    if not path.exists():
        raise ConfigurationError(f"Settings file not found: {path}", context={"path": str(path)})

    with path.open(encoding="utf-8") as handle:
        if path.suffix.lower() == ".json":
            data = json.load(handle)
        else:
            data = yaml.safe_load(handle)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Settings file must contain a mapping: {path}", context={"path": str(path)}
        )
    return data


def _deep_merge(base: Dict[str, Any], overlay: Mapping[str, Any]) -> Dict[str, Any]:
    for key, value in overlay.items():
        if isinstance(value, Mapping) and isinstance(base.get(key), dict):
            _deep_merge(base[key], value)
        else:
            base[key] = copy.deepcopy(value)
    return base


def _normalize_key(key: str) -> str:
    return key.lower().replace("-", "_")


class Settings:
    """Nested settings with dotted-path access.

    Args:
        data: The already-merged settings tree.
    """

    ENV_PREFIX = "ARTIFORGE_"
    ENV_SEPARATOR = "__"

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._data: Dict[str, Any] = copy.deepcopy(dict(data or {}))

    @classmethod
    def load(
        cls,
        *sources: SettingsSource,
        use_env: bool = True,
        env_prefix: str | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> Settings:
        """Load settings from files and/or dicts.

        Args:
            *sources: YAML/JSON file paths or mappings, merged left to right.
            use_env: Whether to apply ``ARTIFORGE_`` environment overrides.
            env_prefix: Custom override prefix.
            environ: Environment mapping, defaults to ``os.environ``.

        Returns:
            Settings instance.
        """
        env = os.environ if environ is None else environ
        merged: Dict[str, Any] = {}
        for source in sources:
            _deep_merge(merged, _read_source(source))

        merged = substitute_variables(merged, env)
        settings = cls(merged)
        if use_env:
            settings.apply_overrides(env, env_prefix or cls.ENV_PREFIX)
        return settings

    def apply_overrides(self, environ: Mapping[str, str], prefix: str | None = None) -> None:
        """Apply ``<PREFIX><SECTION>__<KEY>`` environment overrides in place."""
        prefix = prefix or self.ENV_PREFIX
        for name, raw in environ.items():
            if not name.startswith(prefix):
                continue
            parts = [p for p in name[len(prefix):].split(self.ENV_SEPARATOR) if p]
            if len(parts) < 2:
                logger.debug("Ignoring settings override without a key: %s", name)
                continue
            self._set_path(parts, _convert_type(raw))

    def _set_path(self, parts: List[str], value: Any) -> None:
        node = self._data
        for index, part in enumerate(parts):
            wanted = _normalize_key(part)
            key = next((k for k in node if _normalize_key(str(k)) == wanted), wanted)
            if index == len(parts) - 1:
                node[key] = value
                return
            child = node.get(key)
            if not isinstance(child, dict):
                child = {}
                node[key] = child
            node = child

    def get(self, path: str, default: Any = _MISSING) -> Any:
        """Return the value at a dotted ``path``.

        Raises:
            ConfigurationError: If the path is absent and no default was given.
        """
        node: Any = self._data
        for part in path.split("."):
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                if default is _MISSING:
                    raise ConfigurationError(
                        f"Setting not found: {path}", context={"path": path}
                    )
                return default
        return node

    def section(self, path: str) -> Dict[str, Any]:
        """Return the mapping at ``path``.

        Raises:
            ConfigurationError: If the path is absent or not a mapping.
        """
        value = self.get(path)
        if not isinstance(value, dict):
            raise ConfigurationError(
                f"Setting '{path}' must be a mapping", context={"path": path}
            )
        return copy.deepcopy(value)

    def to_dict(self) -> Dict[str, Any]:
        """Return a deep copy of the settings tree."""
        return copy.deepcopy(self._data)

    def __repr__(self) -> str:
        return f"Settings(sections={sorted(self._data)})"
