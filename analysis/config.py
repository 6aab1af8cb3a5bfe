"""Configuration for an analysis run."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml

from analysis.errors import ConfigError

KNOWN_DATABASES = ("etcd", "etcd2", "zk", "consul", "zetcd", "cetcd")


def suffix_for_prefix(prefix: str) -> str:
    """Guess the system name from a path prefix such as ``testdata/test-01-zk-``."""
    for token in re.split(r"[-/_.]", Path(prefix).name):
        if token in KNOWN_DATABASES:
            return token
    raise ValueError(f"cannot tell which system {prefix!r} belongs to; set `name` explicitly")


@dataclass
class SystemSpec:
    prefix: str
    name: Optional[str] = None

    def __post_init__(self) -> None:
        if self.name is None:
            self.name = suffix_for_prefix(self.prefix)

    @property
    def timeseries_path(self) -> Path:
        return Path(f"{self.prefix}timeseries.csv")

    def node_paths(self, node_count: int) -> List[Path]:
        return [Path(f"{self.prefix}server-{n}.csv") for n in range(1, node_count + 1)]

    @property
    def final_path(self) -> Path:
        return Path(f"{self.prefix}final.csv")


@dataclass
class AnalyzeConfig:
    compared_path: Path
    systems: List[SystemSpec] = field(default_factory=list)
    node_count: int = 3
    on_misaligned: str = "fail"
    validate_cadence: bool = False

    def __post_init__(self) -> None:
        if not self.systems:
            raise ConfigError("at least one system is required")
        if self.node_count < 1:
            raise ConfigError(f"node_count must be positive, got {self.node_count}")
        if self.on_misaligned not in ("fail", "degrade"):
            raise ConfigError(f"on_misaligned must be 'fail' or 'degrade', got {self.on_misaligned!r}")
        names = [system.name for system in self.systems]
        if len(set(names)) != len(names):
            raise ConfigError(f"system names must be unique, got {names}")

    @classmethod
    def from_yaml(cls, path: Path) -> "AnalyzeConfig":
        try:
            data = yaml.safe_load(Path(path).read_text()) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"{path}: invalid YAML: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: expected a mapping at the top level, got {type(data).__name__}")
        if "compared_path" not in data:
            raise ConfigError(f"{path}: missing compared_path")
        data["compared_path"] = Path(data["compared_path"])
        try:
            data["systems"] = [SystemSpec(**entry) for entry in data.get("systems", [])]
            return cls(**data)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"{path}: {exc}") from exc
