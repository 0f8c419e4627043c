"""
Config system - Layered scan configuration with validation.
"""

from typing import Any, Dict, List, Mapping, Optional, get_type_hints, get_origin, get_args
from dataclasses import dataclass, field, fields
from glob import glob
from pathlib import Path
import json
import logging
import os
import types

from .context import ImportContext
from .faults import ConfigInvalidFault
from .filters import Filter, ManifestFilter, PackageFilter, TagFilter, TagMode

logger = logging.getLogger("loadpath.config")

DEFAULT_CONFIG_FILE = "loadpath.yaml"


@dataclass
class ScanConfig:
    """Settings of a scan, as read from the ``scan`` config section."""

    origins: List[str] = field(default_factory=list)
    package: Optional[str] = None
    subpackages: bool = False
    tags: List[str] = field(default_factory=list)
    require_all_tags: bool = False
    skip_manifest: bool = True
    log_level: str = "warning"

    def filters(self) -> List[Filter]:
        """Build the filters described by this config."""
        filters: List[Filter] = []
        if self.skip_manifest:
            filters.append(ManifestFilter())
        if self.package is not None:
            filters.append(
                PackageFilter.with_subpackages(self.package)
                if self.subpackages
                else PackageFilter.of(self.package)
            )
        if self.tags:
            mode = TagMode.ALL if self.require_all_tags else TagMode.ANY
            filters.append(TagFilter(*self.tags, mode=mode))
        return filters

    def context(self) -> ImportContext:
        """Loading context over ``origins``, or ``sys.path`` if none."""
        if not self.origins:
            return ImportContext.from_sys_path()
        return ImportContext(self.origins, name="config")


class ConfigLoader:
    """
    Layered configuration, later layers winning:

    1. config files (YAML or JSON), ``loadpath.yaml`` when none are given
    2. a ``.env`` file
    3. ``LOADPATH_*`` environment variables, ``__`` separating nested keys
       (``LOADPATH_SCAN__PACKAGE=myapp`` sets ``scan.package``)
    4. explicit overrides
    """

    def __init__(self, env_prefix: str = "LOADPATH_"):
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = {}
        # Raw environment strings by dotted key, before coercion
        self._env_strings: Dict[str, str] = {}

    @classmethod
    def load(
        cls,
        paths: Optional[List[str]] = None,
        env_prefix: str = "LOADPATH_",
        env_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> "ConfigLoader":
        """
        Args:
            paths: Config file paths or glob patterns, merged in order
            env_prefix: Prefix of the environment variables to read
            env_file: Optional .env file
            overrides: Values applied last

        Returns:
            A populated ConfigLoader

        Raises:
            ConfigInvalidFault: If a config file does not hold a mapping
        """
        loader = cls(env_prefix=env_prefix)

        if not paths and Path(DEFAULT_CONFIG_FILE).exists():
            paths = [DEFAULT_CONFIG_FILE]

        for pattern in paths or ():
            for path in sorted(glob(pattern)):
                loader._read_file(Path(path))

        if env_file:
            loader._apply_env(_read_env_file(Path(env_file)))
        loader._apply_env(os.environ)

        if overrides:
            _deep_merge(loader.config_data, overrides)

        return loader

    def _read_file(self, path: Path):
        if path.suffix == ".json":
            with open(path) as f:
                data = json.load(f)
        elif path.suffix in (".yaml", ".yml"):
            import yaml
            with open(path) as f:
                data = yaml.safe_load(f)
        else:
            logger.debug(f"Skipping config file of unknown format: {path}")
            return

        if data is None:
            return
        if not isinstance(data, dict):
            raise ConfigInvalidFault(str(path), f"expected a mapping, got {type(data).__name__}")

        logger.debug(f"Loaded config from {path}")
        _deep_merge(self.config_data, data)

    def _apply_env(self, variables: Mapping[str, str]):
        for name, raw in variables.items():
            if not name.startswith(self.env_prefix):
                continue

            *parents, leaf = name[len(self.env_prefix):].lower().split("__")
            section = self.config_data
            for part in parents:
                if not isinstance(section.get(part), dict):
                    section[part] = {}
                section = section[part]
            section[leaf] = self._parse_value(raw)
            self._env_strings[".".join(parents + [leaf])] = raw

    def _parse_value(self, value: str) -> Any:
        """Coerce an environment string to bool, int, float or JSON when it looks like one."""
        lowered = value.lower()
        if lowered in ("true", "yes"):
            return True
        if lowered in ("false", "no"):
            return False

        for number in (int, float):
            try:
                return number(value)
            except ValueError:
                pass

        if value[:1] in ("{", "["):
            try:
                return json.loads(value)
            except ValueError:
                pass

        return value

    def get(self, path: str, default: Any = None) -> Any:
        """Value at a dotted path such as ``"scan.package"``."""
        node: Any = self.config_data
        for part in path.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def to_dict(self) -> dict:
        return dict(self.config_data)

    def scan_config(self) -> ScanConfig:
        """
        Build and validate the ScanConfig from the ``scan`` section.

        Raises:
            ConfigInvalidFault: If a field has the wrong type
        """
        data = self.get("scan", {})
        if not isinstance(data, dict):
            raise ConfigInvalidFault("scan", f"expected a mapping, got {type(data).__name__}")

        hints = get_type_hints(ScanConfig)
        kwargs = {}

        for field_info in fields(ScanConfig):
            name = field_info.name
            if name not in data:
                continue

            value = data[name]
            expected = hints[name]

            # A str field keeps the env string that looked like a number
            if _accepts_str(expected) and isinstance(value, (int, float)) and not isinstance(value, bool):
                raw = self._env_strings.get(f"scan.{name}")
                if raw is not None and self._parse_value(raw) == value:
                    value = raw

            # Comma-separated lists from env vars
            if get_origin(expected) is list and isinstance(value, str):
                value = [item.strip() for item in value.split(",") if item.strip()]

            if not self._check_type(value, expected):
                raise ConfigInvalidFault(
                    f"scan.{name}",
                    f"expected {getattr(expected, '__name__', expected)}, got {type(value).__name__}",
                )
            kwargs[name] = value

        unknown = set(data) - {f.name for f in fields(ScanConfig)}
        if unknown:
            logger.debug(f"Ignoring unknown scan settings: {sorted(unknown)}")

        return ScanConfig(**kwargs)

    def _check_type(self, value: Any, expected_type: Any) -> bool:
        """Basic type checking."""
        origin = get_origin(expected_type)

        # Optional[X] is Union[X, None]
        if origin is types.UnionType or str(origin) == "typing.Union":
            if value is None:
                return True
            args = [arg for arg in get_args(expected_type) if arg is not type(None)]
            return any(self._check_type(value, arg) for arg in args)

        if origin is list:
            (item_type,) = get_args(expected_type) or (Any,)
            return isinstance(value, list) and (
                item_type is Any or all(isinstance(item, item_type) for item in value)
            )

        # Booleans are ints; keep them apart
        if expected_type is not bool and isinstance(value, bool):
            return False

        return isinstance(value, expected_type)


def _read_env_file(path: Path) -> Dict[str, str]:
    """``KEY=value`` pairs of a .env file; a missing file reads as empty."""
    if not path.exists():
        return {}

    variables = {}
    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        name, _, value = line.partition("=")
        variables[name.strip()] = value.strip().strip("'\"")
    return variables


def _deep_merge(target: dict, source: dict) -> None:
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _deep_merge(target[key], value)
        else:
            target[key] = value


def _accepts_str(expected: Any) -> bool:
    if expected is str:
        return True
    return str in get_args(expected)
