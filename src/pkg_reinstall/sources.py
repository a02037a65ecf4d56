"""PackageSource protocol and implementations.

A source resolves a PackageIdentity to its PackageContent. Memory, file
(YAML manifests on disk) and Redis-backed sources are provided.
"""

from __future__ import annotations

__all__ = [
    "PackageSource",
    "MemoryPackageSource",
    "FilePackageSource",
    "RedisPackageSource",
    "open_source",
]

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable
from urllib.parse import urlparse

import yaml
from packaging.version import InvalidVersion, Version

from pkg_reinstall.errors import SourceReadError
from pkg_reinstall.types import PackageContent, PackageIdentity

if TYPE_CHECKING:
    from redis import Redis

logger = logging.getLogger(__name__)


def _manifest_key(identity: PackageIdentity) -> str:
    return f"{identity.id}/{identity.version}"


def _same_version(spelling: str, version: Version) -> bool:
    try:
        return Version(spelling) == version
    except InvalidVersion:
        return False


def _parse_manifest(raw: str | bytes, origin: str) -> PackageContent:
    """Parse a YAML manifest.

    Raises:
        SourceReadError: If the manifest is not valid YAML or misses id/version.
    """
    if isinstance(raw, bytes):
        raw = raw.decode()
    try:
        data = yaml.safe_load(raw)
        if not isinstance(data, dict):
            raise SourceReadError(f"Manifest is not a mapping: {origin}", path=origin)
        return PackageContent.from_dict(data)
    except yaml.YAMLError as e:
        raise SourceReadError(f"Invalid manifest YAML in {origin}: {e}", path=origin) from e
    except (KeyError, ValueError) as e:
        raise SourceReadError(f"Invalid manifest in {origin}: {e}", path=origin) from e


@runtime_checkable
class PackageSource(Protocol):
    """Protocol for package sources."""

    def find(self, identity: PackageIdentity) -> PackageContent | None:
        """Return the package matching identity, or None if absent."""
        ...

    def list(self) -> list[PackageIdentity]:
        """Return identities of all packages in the source."""
        ...

    def add(self, package: PackageContent) -> None:
        """Add or replace a package in the source."""
        ...


class MemoryPackageSource:
    """In-memory package source."""

    def __init__(self, packages: Iterable[PackageContent] = ()) -> None:
        self._packages: dict[PackageIdentity, PackageContent] = {}
        for package in packages:
            self.add(package)

    def find(self, identity: PackageIdentity) -> PackageContent | None:
        return self._packages.get(identity)

    def list(self) -> list[PackageIdentity]:
        return list(self._packages)

    def add(self, package: PackageContent) -> None:
        self._packages[package.identity] = package

    def __repr__(self) -> str:
        return f"<MemoryPackageSource: {len(self._packages)} package(s)>"


class FilePackageSource:
    """File-based package source.

    Manifests live at {base_path}/{id}/{version}.yaml.
    """

    def __init__(self, base_path: Path) -> None:
        self._base_path = Path(base_path) if isinstance(base_path, str) else base_path

    def _manifest_path(self, identity: PackageIdentity) -> Path:
        return self._base_path / identity.id / f"{identity.version}.yaml"

    def _equivalent_manifest(self, identity: PackageIdentity) -> Path | None:
        """Manifest whose version equals identity's under another spelling (1.0 vs 1.0.0)."""
        package_dir = self._base_path / identity.id
        if not package_dir.is_dir():
            return None
        for manifest in sorted(package_dir.glob("*.yaml")):
            if _same_version(manifest.stem, identity.version):
                return manifest
        return None

    def find(self, identity: PackageIdentity) -> PackageContent | None:
        path = self._manifest_path(identity)
        if not path.exists():
            path = self._equivalent_manifest(identity)
            if path is None:
                return None
        return _parse_manifest(path.read_text(), str(path))

    def list(self) -> list[PackageIdentity]:
        if not self._base_path.exists():
            return []

        result = []
        for manifest in sorted(self._base_path.glob("*/*.yaml")):
            try:
                result.append(PackageIdentity.parse(manifest.parent.name, manifest.stem))
            except ValueError:
                logger.warning("Skipping manifest with invalid version: %s", manifest)
        return result

    def add(self, package: PackageContent) -> None:
        path = self._manifest_path(package.identity)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.safe_dump(package.to_dict(), sort_keys=False))

    def __repr__(self) -> str:
        return f"<FilePackageSource: {self._base_path}>"


class RedisPackageSource:
    """Redis-based package source. Uses one Redis hash for all manifests."""

    def __init__(self, redis: Redis, prefix: str = "packages") -> None:
        """Initialize Redis source.

        Args:
            redis: Redis client instance.
            prefix: Key prefix. Manifests stored at {prefix}:packages
        """
        self._redis = redis
        self._prefix = prefix
        self._key = f"{prefix}:packages"

    def _fields(self) -> list[str]:
        return [f.decode() if isinstance(f, bytes) else f for f in self._redis.hkeys(self._key)]

    def _equivalent_field(self, identity: PackageIdentity) -> str | None:
        for field in self._fields():
            package_id, _, version = field.rpartition("/")
            if package_id == identity.id and _same_version(version, identity.version):
                return field
        return None

    def find(self, identity: PackageIdentity) -> PackageContent | None:
        field = _manifest_key(identity)
        raw = self._redis.hget(self._key, field)
        if raw is None:
            field = self._equivalent_field(identity)
            if field is None:
                return None
            raw = self._redis.hget(self._key, field)
        return _parse_manifest(raw, f"{self._key}[{field}]")

    def list(self) -> list[PackageIdentity]:
        result = []
        for field in self._fields():
            package_id, _, version = field.rpartition("/")
            try:
                result.append(PackageIdentity.parse(package_id, version))
            except ValueError:
                logger.warning("Skipping invalid manifest key: %s", field)
        return result

    def add(self, package: PackageContent) -> None:
        manifest = yaml.safe_dump(package.to_dict(), sort_keys=False)
        self._redis.hset(self._key, _manifest_key(package.identity), manifest.encode())

    def __repr__(self) -> str:
        return f"<RedisPackageSource: {self._key}>"


def open_source(target: str, prefix: str = "packages") -> PackageSource:
    """Open a package source based on URL scheme.

    Args:
        target: Directory path, file:// URL or redis:// URL.
        prefix: Key prefix for Redis sources.

    Returns:
        A PackageSource for the target.

    Raises:
        ValueError: Unknown URL scheme.
    """
    parsed = urlparse(target)

    if parsed.scheme in ("redis", "rediss"):
        import redis as redis_lib

        return RedisPackageSource(redis_lib.from_url(target), prefix=prefix)

    elif parsed.scheme == "file":
        return FilePackageSource(Path(parsed.path))

    elif parsed.scheme == "" or len(parsed.scheme) == 1:
        # Bare path (a single-letter scheme is a Windows drive)
        return FilePackageSource(Path(target))

    else:
        raise ValueError(
            f"Unknown scheme: {parsed.scheme}. Supported: redis://, rediss://, file://"
        )
