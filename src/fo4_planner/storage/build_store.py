"""File-backed storage for named builds.

Builds are saved as ``<name>.json`` (the serialization payload) inside a
store directory. The directory comes from, in order: an explicit path,
``$FO4_PLANNER_HOME``, ``$XDG_DATA_HOME/fo4-planner/builds``, or
``~/.local/share/fo4-planner/builds``.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from fo4_planner.catalog.perk_catalog import Catalog
from fo4_planner.engine.build_config import BuildConfig
from fo4_planner.engine.build_engine import BuildEngine
from fo4_planner.engine.serialization import decode, encode
from fo4_planner.models.errors import StoreError

log = logging.getLogger(__name__)

BUILD_SUFFIX = ".json"
_UNSAFE_CHARS = set('/\\:*?"<>|\0')


def default_store_dir() -> Path:
    """Resolve the default build directory from the environment."""
    home = os.environ.get("FO4_PLANNER_HOME")
    if home:
        return Path(home).expanduser()
    xdg = os.environ.get("XDG_DATA_HOME")
    base = Path(xdg).expanduser() if xdg else Path.home() / ".local" / "share"
    return base / "fo4-planner" / "builds"


def _file_name(name: str) -> str:
    cleaned = name.strip()
    if not cleaned or cleaned in (".", ".."):
        raise StoreError("A build name cannot be empty")
    if any(ch in _UNSAFE_CHARS for ch in cleaned):
        raise StoreError(f"Build name {name!r} contains characters not allowed in a file name")
    return cleaned + BUILD_SUFFIX


class BuildStore:
    """Save, load, and enumerate builds in one directory."""

    __slots__ = ("_root",)

    def __init__(self, root: Path | None = None) -> None:
        self._root = Path(root) if root is not None else default_store_dir()

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, name: str) -> Path:
        return self._root / _file_name(name)

    def save(self, engine: BuildEngine, name: str | None = None) -> Path:
        """Write *engine* under *name* (defaults to the build's own name).

        The file is written to a temporary sibling and then renamed, so an
        interrupted save never truncates an existing build.
        """
        name = name if name is not None else engine.name
        if name is None:
            raise StoreError(
                'A name for the build must be specified. Try "name <NAME>" or "save <NAME>".'
            )
        path = self.path_for(name)
        data = encode(engine)
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            tmp = path.with_name(path.name + ".tmp")
            tmp.write_bytes(data)
            tmp.replace(path)
        except OSError as exc:
            raise StoreError(f"Could not save build to {path}: {exc}") from exc
        log.info("Saved build %r to %s (%d bytes)", name, path, len(data))
        return path

    def resolve(self, name_or_path: str | Path) -> Path:
        """Find a build file by path, path without suffix, or stored name."""
        original = Path(name_or_path).expanduser()
        if not original.name:
            raise StoreError(f'Unable to find build file for "{name_or_path}"')
        candidates = [original, original.with_name(original.name + BUILD_SUFFIX)]
        if not original.is_absolute():
            candidates.append(self._root / original)
            candidates.append(self._root / (original.name + BUILD_SUFFIX))
        for candidate in candidates:
            if candidate.is_file():
                log.debug("Resolved build %r to %s", str(name_or_path), candidate)
                return candidate
        raise StoreError(f'Unable to find build file for "{name_or_path}"')

    def load(
        self,
        name_or_path: str | Path,
        catalog: Catalog,
        config: BuildConfig | None = None,
    ) -> BuildEngine:
        """Load and validate a build. Decode errors propagate unchanged."""
        path = self.resolve(name_or_path)
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise StoreError(f"Could not read {path}: {exc}") from exc
        engine = decode(data, catalog, config)
        log.info("Loaded build from %s", path)
        return engine

    def list_builds(self) -> list[str]:
        """Names of all saved builds, sorted."""
        if not self._root.is_dir():
            return []
        return sorted(p.stem for p in self._root.glob("*" + BUILD_SUFFIX) if p.is_file())

    def delete(self, name: str) -> None:
        path = self.path_for(name)
        try:
            path.unlink()
        except FileNotFoundError:
            raise StoreError(f"No saved build named {name!r}") from None
        log.info("Deleted build %r", name)
