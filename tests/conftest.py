"""Test fixtures for pkg-reinstall."""

from pathlib import Path

import pytest

from pkg_reinstall import (
    EventBus,
    MemoryPackageSource,
    MemoryProject,
    PackageContent,
    PackageFile,
    PackageIdentity,
    ReferenceDescriptor,
    ReferenceKind,
)

# =============================================================================
# Fakes
# =============================================================================


class MockRedisClient:
    """Mock Redis client for testing RedisPackageSource without actual Redis."""

    def __init__(self) -> None:
        self._data: dict[str, dict[str, bytes]] = {}

    def hset(self, key: str, field: str, value: bytes) -> int:
        if key not in self._data:
            self._data[key] = {}
        is_new = field not in self._data[key]
        self._data[key][field] = value
        return 1 if is_new else 0

    def hget(self, key: str, field: str) -> bytes | None:
        return self._data.get(key, {}).get(field)

    def hkeys(self, key: str) -> list[bytes]:
        # Real redis returns bytes unless decode_responses=True
        return [k.encode() for k in self._data.get(key, {})]


class RecordingFileRemover:
    """FileRemover that records paths instead of deleting them."""

    def __init__(self) -> None:
        self.removed: list[Path] = []

    def remove(self, path: Path) -> None:
        self.removed.append(Path(path))


def _make_package(
    package_id: str = "MyPackage",
    version: str = "1.2.3.4",
    references: tuple[str, ...] = (),
    files: dict[str, str] | None = None,
    dependencies: tuple[str, ...] = (),
    readme: str | None = None,
) -> PackageContent:
    """Build a PackageContent with sensible defaults."""
    return PackageContent(
        identity=PackageIdentity.parse(package_id, version),
        dependencies=dependencies,
        references=references,
        files=tuple(PackageFile(p, t) for p, t in (files or {}).items()),
        readme=readme,
    )


def _install_directly(project, package: PackageContent, local_copy: bool = True) -> None:
    """Put a package into a project without going through InstallStep."""
    project.record_installed(package)
    for name in package.references:
        project.add_reference(ReferenceDescriptor(ReferenceKind.ASSEMBLY, name, local_copy))


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def mock_redis() -> MockRedisClient:
    """Create a mock Redis client for testing."""
    return MockRedisClient()


@pytest.fixture
def file_remover() -> RecordingFileRemover:
    return RecordingFileRemover()


@pytest.fixture
def events() -> EventBus:
    return EventBus()


@pytest.fixture
def source() -> MemoryPackageSource:
    return MemoryPackageSource()


@pytest.fixture
def project(source: MemoryPackageSource) -> MemoryProject:
    """Empty in-memory project rooted at /projects/MyProject."""
    return MemoryProject("MyProject", source, root=Path("/projects/MyProject"))


@pytest.fixture
def make_package():
    """Factory for PackageContent objects."""
    return _make_package


@pytest.fixture
def install_directly():
    """Install a package into a project bypassing InstallStep."""
    return _install_directly
