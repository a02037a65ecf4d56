"""Tests for PackageSource protocol and implementations."""

from pathlib import Path
from typing import TYPE_CHECKING
from unittest.mock import MagicMock, patch

import pytest

from pkg_reinstall import (
    FilePackageSource,
    MemoryPackageSource,
    PackageIdentity,
    PackageSource,
    RedisPackageSource,
    SourceReadError,
    open_source,
)

if TYPE_CHECKING:
    from tests.conftest import MockRedisClient


# =============================================================================
# Protocol Tests
# =============================================================================


class TestPackageSourceProtocol:
    """Verify implementations satisfy the PackageSource protocol."""

    def test_memory_source_is_package_source(self) -> None:
        assert isinstance(MemoryPackageSource(), PackageSource)

    def test_file_source_is_package_source(self, tmp_path: Path) -> None:
        assert isinstance(FilePackageSource(tmp_path), PackageSource)

    def test_redis_source_is_package_source(self, mock_redis: "MockRedisClient") -> None:
        assert isinstance(RedisPackageSource(mock_redis), PackageSource)


# =============================================================================
# Shared Behaviour
# =============================================================================


@pytest.fixture(params=["memory", "file", "redis"])
def any_source(request, tmp_path: Path, mock_redis: "MockRedisClient"):
    if request.param == "memory":
        return MemoryPackageSource()
    if request.param == "file":
        return FilePackageSource(tmp_path / "feed")
    return RedisPackageSource(mock_redis, prefix="test")


class TestSourceBehaviour:
    """Behaviour common to all sources."""

    def test_find_missing_returns_none(self, any_source) -> None:
        assert any_source.find(PackageIdentity.parse("Nope", "1.0")) is None

    def test_list_empty(self, any_source) -> None:
        assert any_source.list() == []

    def test_add_then_find(self, any_source, make_package) -> None:
        package = make_package(
            references=("A", "B"),
            files={"scripts/app.js": "var a = 1;\n"},
            dependencies=("Core",),
            readme="readme.txt",
        )
        any_source.add(package)

        assert any_source.find(package.identity) == package

    def test_find_requires_exact_version(self, any_source, make_package) -> None:
        any_source.add(make_package(version="1.2.3.4"))

        assert any_source.find(PackageIdentity.parse("MyPackage", "1.2.3.5")) is None

    def test_find_matches_equal_version_spelled_differently(
        self, any_source, make_package
    ) -> None:
        """1.0.0 finds the package stored as 1.0.

        Breaks when: Lookup compares version strings instead of versions.
        """
        package = make_package(version="1.0")
        any_source.add(package)

        assert any_source.find(PackageIdentity.parse("MyPackage", "1.0.0")) == package

    def test_list_returns_identities(self, any_source, make_package) -> None:
        any_source.add(make_package("A", "1.0"))
        any_source.add(make_package("B", "2.0.1"))

        assert sorted(str(i) for i in any_source.list()) == ["A 1.0", "B 2.0.1"]

    def test_add_replaces_same_identity(self, any_source, make_package) -> None:
        any_source.add(make_package(references=("Old",)))
        any_source.add(make_package(references=("New",)))

        found = any_source.find(PackageIdentity.parse("MyPackage", "1.2.3.4"))
        assert found.references == ("New",)
        assert len(any_source.list()) == 1


# =============================================================================
# FilePackageSource
# =============================================================================


class TestFilePackageSource:
    def test_manifest_layout(self, tmp_path: Path, make_package) -> None:
        FilePackageSource(tmp_path).add(make_package())

        assert (tmp_path / "MyPackage" / "1.2.3.4.yaml").exists()

    def test_reads_handwritten_manifest(self, tmp_path: Path) -> None:
        manifest = tmp_path / "NUnit" / "2.6.3.yaml"
        manifest.parent.mkdir()
        manifest.write_text(
            "id: NUnit\n"
            "version: 2.6.3\n"
            "references: [nunit.framework]\n"
            "files:\n"
            "  - content/NUnit.txt\n"
        )

        package = FilePackageSource(tmp_path).find(PackageIdentity.parse("NUnit", "2.6.3"))

        assert package.references == ("nunit.framework",)
        assert [f.path for f in package.files] == ["content/NUnit.txt"]

    def test_malformed_manifest_raises(self, tmp_path: Path) -> None:
        manifest = tmp_path / "Bad" / "1.0.yaml"
        manifest.parent.mkdir()
        manifest.write_text("id: [oops")

        with pytest.raises(SourceReadError) as exc_info:
            FilePackageSource(tmp_path).find(PackageIdentity.parse("Bad", "1.0"))

        assert exc_info.value.path == str(manifest)

    def test_manifest_without_version_raises(self, tmp_path: Path) -> None:
        manifest = tmp_path / "Bad" / "1.0.yaml"
        manifest.parent.mkdir()
        manifest.write_text("id: Bad\n")

        with pytest.raises(SourceReadError, match="Invalid manifest"):
            FilePackageSource(tmp_path).find(PackageIdentity.parse("Bad", "1.0"))

    def test_list_skips_invalid_versions(self, tmp_path: Path) -> None:
        (tmp_path / "Pkg").mkdir()
        (tmp_path / "Pkg" / "not-a-version.yaml").write_text("id: Pkg\n")

        assert FilePackageSource(tmp_path).list() == []


# =============================================================================
# RedisPackageSource
# =============================================================================


class TestRedisPackageSource:
    def test_stores_manifest_in_hash(self, mock_redis: "MockRedisClient", make_package) -> None:
        RedisPackageSource(mock_redis, prefix="feed").add(make_package())

        assert mock_redis.hget("feed:packages", "MyPackage/1.2.3.4") is not None

    def test_malformed_manifest_raises(self, mock_redis: "MockRedisClient") -> None:
        mock_redis.hset("feed:packages", "Bad/1.0", b"- just\n- a list\n")

        with pytest.raises(SourceReadError, match="not a mapping"):
            RedisPackageSource(mock_redis, prefix="feed").find(PackageIdentity.parse("Bad", "1.0"))


# =============================================================================
# open_source
# =============================================================================


class TestOpenSource:
    def test_bare_path(self, tmp_path: Path) -> None:
        assert isinstance(open_source(str(tmp_path)), FilePackageSource)

    def test_file_url(self, tmp_path: Path, make_package) -> None:
        FilePackageSource(tmp_path).add(make_package())

        source = open_source(f"file://{tmp_path}")

        assert isinstance(source, FilePackageSource)
        assert len(source.list()) == 1

    def test_redis_url(self) -> None:
        with patch("redis.from_url") as mock_from_url:
            mock_from_url.return_value = MagicMock()

            source = open_source("redis://localhost:6379/0", prefix="feed")

        assert isinstance(source, RedisPackageSource)
        mock_from_url.assert_called_once_with("redis://localhost:6379/0")

    def test_unknown_scheme(self) -> None:
        with pytest.raises(ValueError, match="Unknown scheme"):
            open_source("s3://bucket/feed")
