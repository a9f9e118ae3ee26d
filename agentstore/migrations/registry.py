"""Migration registry — the ordered, read-only catalog of migration units.

Building a registry never touches the database. Units come either from an
explicit list or from modules named ``m_NNN_description.py`` inside a
package, where NNN is the version and the rest is documentation.
"""

from __future__ import annotations

import importlib
import pkgutil
import re
from functools import lru_cache
from types import ModuleType
from typing import Iterable, Iterator

from agentstore.exceptions import DuplicateVersionError
from agentstore.types import MigrationUnit

MIGRATION_PREFIX = "m_"
_MODULE_RE = re.compile(r"^m_(\d+)(?:_(\w+))?$")


class MigrationRegistry:
    """Immutable, version-ordered collection of migration units."""

    def __init__(self, units: Iterable[MigrationUnit] = ()) -> None:
        by_version: dict[int, MigrationUnit] = {}
        for unit in units:
            if unit.version in by_version:
                raise DuplicateVersionError(unit.version)
            by_version[unit.version] = unit
        self._units: tuple[MigrationUnit, ...] = tuple(
            by_version[v] for v in sorted(by_version)
        )
        self._by_version = by_version

    @classmethod
    def discover(cls, package: str | ModuleType) -> MigrationRegistry:
        """Build a registry from the ``m_NNN_*`` modules of a package."""
        if isinstance(package, str):
            package = importlib.import_module(package)

        units = []
        for info in sorted(pkgutil.iter_modules(package.__path__), key=lambda m: m.name):
            match = _MODULE_RE.match(info.name)
            if not match:
                continue
            module = importlib.import_module(f"{package.__name__}.{info.name}")
            units.append(MigrationUnit(
                version=int(match.group(1)),
                description=match.group(2) or "",
                statements=tuple(module.STATEMENTS),
            ))
        return cls(units)

    @property
    def versions(self) -> tuple[int, ...]:
        return tuple(u.version for u in self._units)

    @property
    def latest(self) -> int | None:
        return self._units[-1].version if self._units else None

    def get(self, version: int) -> MigrationUnit | None:
        return self._by_version.get(version)

    def __iter__(self) -> Iterator[MigrationUnit]:
        return iter(self._units)

    def __len__(self) -> int:
        return len(self._units)

    def __contains__(self, version: object) -> bool:
        return version in self._by_version

    def __repr__(self) -> str:
        return f"MigrationRegistry(versions={list(self.versions)})"


@lru_cache(maxsize=1)
def default_registry() -> MigrationRegistry:
    """The migrations shipped with agentstore."""
    return MigrationRegistry.discover("agentstore.migrations")
