import os
import yaml
from dataclasses import dataclass, replace, fields
from typing import Any, Dict, Optional, Tuple

from common.parse import ParseError, parse_size
from exceptions.exceptions import ConfigError

DEFAULT_CONFIG_PATH = "config.yaml"


def _read(path: str):
    try:
        with open(path, "r") as f:
            return yaml.safe_load(f)
    except OSError as e:
        raise ConfigError("CONFIG_UNREADABLE", f"Cannot read config file {path}: {e}", context=path) from e
    except yaml.YAMLError as e:
        raise ConfigError("CONFIG_MALFORMED", f"Config file {path} is not valid YAML: {e}", context=path) from e


@dataclass(frozen=True)
class Paths:
    sources: Tuple[str, ...] = ()
    destinations: Tuple[str, ...] = ()

@dataclass(frozen=True)
class Filter:
    min_size: int = 0
    max_size: int = 0
    prefix: str = ""

@dataclass(frozen=True)
class Transfer:
    method: str = "copy"
    rsync_binary: str = "rsync"
    rsync_args: Tuple[str, ...] = ("--archive", "--partial")
    max_parallel_transfers: Optional[int] = None
    max_rounds: Optional[int] = None

@dataclass(frozen=True)
class Logging:
    level: str = "INFO"


@dataclass(frozen=True)
class Config:
    paths: Paths = Paths()
    filter: Filter = Filter()
    transfer: Transfer = Transfer()
    logging: Logging = Logging()


# Flat layout used by the first version of the tool:
#   fromPaths / toPaths / fromPathFilter: {minSize, maxSize, prefix}
_LEGACY_FILTER_KEYS = {"minSize": "min_size", "maxSize": "max_size", "prefix": "prefix"}


def _from_legacy(data: Dict[str, Any]) -> Dict[str, Any]:
    out = {k: v for k, v in data.items() if k not in ("fromPaths", "toPaths", "fromPathFilter")}
    paths = dict(out.get("paths") or {})
    if "fromPaths" in data:
        paths["sources"] = data["fromPaths"]
    if "toPaths" in data:
        paths["destinations"] = data["toPaths"]
    out["paths"] = paths
    legacy_filter = data.get("fromPathFilter") or {}
    if not isinstance(legacy_filter, dict):
        raise ConfigError("CONFIG_MALFORMED", "fromPathFilter must be a mapping")
    flt = dict(out.get("filter") or {})
    for key, value in legacy_filter.items():
        if key not in _LEGACY_FILTER_KEYS:
            raise ConfigError("CONFIG_UNKNOWN_KEY", f"Unknown key fromPathFilter.{key}")
        flt[_LEGACY_FILTER_KEYS[key]] = value
    out["filter"] = flt
    return out


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = data.get(name, {}) or {}
    if not isinstance(section, dict):
        raise ConfigError("CONFIG_MALFORMED", f"Section '{name}' must be a mapping", context=name)
    return section


def _merge(default, section: Dict[str, Any], name: str):
    known = {f.name for f in fields(default)}
    unknown = sorted(set(section) - known)
    if unknown:
        raise ConfigError("CONFIG_UNKNOWN_KEY", f"Unknown key(s) in '{name}': {', '.join(unknown)}", context=name)
    return replace(default, **section)


def _as_path_tuple(value: Any, name: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        raise ConfigError("CONFIG_MALFORMED", f"'{name}' must be a list of paths", context=name)
    return tuple(os.path.expanduser(str(v)) for v in value)


def _as_optional_int(value: Any, name: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigError("CONFIG_MALFORMED", f"'{name}' must be a positive integer", context=name)
    return value


def _normalize(cfg: Config) -> Config:
    try:
        flt = replace(
            cfg.filter,
            min_size=parse_size(cfg.filter.min_size),
            max_size=parse_size(cfg.filter.max_size),
            prefix="" if cfg.filter.prefix is None else str(cfg.filter.prefix),
        )
    except ParseError as e:
        raise ConfigError("CONFIG_BAD_SIZE", str(e), context="filter") from e

    paths = replace(
        cfg.paths,
        sources=_as_path_tuple(cfg.paths.sources, "paths.sources"),
        destinations=_as_path_tuple(cfg.paths.destinations, "paths.destinations"),
    )
    transfer = replace(
        cfg.transfer,
        method=str(cfg.transfer.method).lower(),
        rsync_args=tuple(str(a) for a in (cfg.transfer.rsync_args or ())),
        max_parallel_transfers=_as_optional_int(cfg.transfer.max_parallel_transfers, "transfer.max_parallel_transfers"),
        max_rounds=_as_optional_int(cfg.transfer.max_rounds, "transfer.max_rounds"),
    )
    return replace(cfg, paths=paths, filter=flt, transfer=transfer)


def config_from_dict(data: Dict[str, Any]) -> Config:
    if not isinstance(data, dict):
        raise ConfigError("CONFIG_MALFORMED", "Config root must be a mapping")
    if {"fromPaths", "toPaths", "fromPathFilter"} & set(data):
        data = _from_legacy(data)
    unknown = sorted(set(data) - {f.name for f in fields(Config)})
    if unknown:
        raise ConfigError("CONFIG_UNKNOWN_KEY", f"Unknown config section(s): {', '.join(unknown)}")

    cfg = Config()
    paths = _merge(cfg.paths, _section(data, "paths"), "paths")
    flt = _merge(cfg.filter, _section(data, "filter"), "filter")
    transfer = _merge(cfg.transfer, _section(data, "transfer"), "transfer")
    logging = _merge(cfg.logging, _section(data, "logging"), "logging")
    cfg = replace(cfg, paths=paths, filter=flt, transfer=transfer, logging=logging)
    return _normalize(cfg)


def load_config(path: Optional[str]) -> Config:
    """Load the YAML config at ``path``; ``None`` yields the defaults.

    An explicitly named file that does not exist is a startup error.
    """
    if not path:
        return Config()
    if not os.path.isfile(path):
        raise ConfigError("CONFIG_NOT_FOUND", f"Config file not found: {path}", context=path)
    data = _read(path) or {}
    return config_from_dict(data)
