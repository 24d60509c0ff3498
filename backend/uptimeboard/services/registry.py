"""Target registry - the ordered list of monitored endpoints."""
import logging
import os
from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Optional, Sequence, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from ..exceptions import ConfigError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Target:
    """A monitored endpoint."""
    name: str
    url: str


class TargetConfig(BaseModel):
    """One entry of the targets file."""
    name: str = Field(..., min_length=1, max_length=255)
    url: str = Field(..., min_length=1)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value

    @field_validator("url")
    @classmethod
    def check_scheme(cls, value: str) -> str:
        value = value.strip()
        if not value.lower().startswith(("http://", "https://")):
            raise ValueError("url must start with http:// or https://")
        return value


Source = Union[str, "os.PathLike[str]", Sequence[Mapping[str, Any]]]


def _read_yaml(path: str) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Targets file not found: {path}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read targets file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e


def load_targets(source: Source) -> list[Target]:
    """Load targets from a YAML file path or a sequence of mappings.

    The file may hold either a bare list or a mapping with a ``targets`` key.
    Order is preserved. Raises ConfigError on malformed input or duplicate names.
    """
    if isinstance(source, (str, os.PathLike)):
        path = os.fspath(source)
        data = _read_yaml(path)
        origin = path
    else:
        data = source
        origin = "<inline>"

    if data is None:
        data = []
    if isinstance(data, Mapping):
        data = data.get("targets") or []
    if isinstance(data, (str, bytes)) or not isinstance(data, Sequence):
        raise ConfigError(f"{origin}: expected a list of targets")

    targets: list[Target] = []
    seen: set[str] = set()
    for index, entry in enumerate(data):
        if not isinstance(entry, Mapping):
            raise ConfigError(f"{origin}: target #{index + 1} is not a mapping")
        try:
            parsed = TargetConfig(**entry)
        except ValidationError as e:
            raise ConfigError(f"{origin}: target #{index + 1} is invalid: {e}") from e
        if parsed.name in seen:
            raise ConfigError(f"{origin}: duplicate target name '{parsed.name}'")
        seen.add(parsed.name)
        targets.append(Target(name=parsed.name, url=parsed.url))

    if not targets:
        logger.warning(f"No targets configured in {origin}")
    else:
        logger.info(f"Loaded {len(targets)} targets from {origin}")
    return targets


class TargetRegistry:
    """Read-only, ordered collection of targets."""

    def __init__(self, targets: Sequence[Target]):
        self._targets = tuple(targets)
        self._by_name = {t.name: t for t in self._targets}
        if len(self._by_name) != len(self._targets):
            raise ConfigError("Duplicate target names in registry")

    @classmethod
    def load(cls, source: Source) -> "TargetRegistry":
        return cls(load_targets(source))

    def get(self, name: str) -> Optional[Target]:
        return self._by_name.get(name)

    def __iter__(self) -> Iterator[Target]:
        return iter(self._targets)

    def __len__(self) -> int:
        return len(self._targets)
