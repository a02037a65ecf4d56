"""CLI for reinstalling packages in a file-backed project.

Commands:
    reinstall - Force uninstall and reinstall a package, keeping reference flags
    list - Show installed packages and references

Usage:
    python -m pkg_reinstall.cli.reinstall reinstall --project ./app --source ./feed MyPackage 1.2.3.4
    python -m pkg_reinstall.cli.reinstall reinstall --project ./app --source redis://localhost:6379 MyPackage 1.2.3.4
    python -m pkg_reinstall.cli.reinstall list --project ./app
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from pkg_reinstall.config import ReinstallConfig
from pkg_reinstall.errors import ReinstallError
from pkg_reinstall.orchestrator import ReinstallOrchestrator
from pkg_reinstall.project import FileProject
from pkg_reinstall.sources import MemoryPackageSource, open_source
from pkg_reinstall.types import PackageIdentity

logger = logging.getLogger(__name__)


def _load_config(config_path: Path | None) -> ReinstallConfig:
    if config_path is not None:
        return ReinstallConfig.from_yaml(config_path)
    return ReinstallConfig.from_env()


def reinstall(
    project_dir: Path,
    package_id: str,
    version: str,
    source: str | None = None,
    config_path: Path | None = None,
) -> int:
    """Reinstall a package in the project at project_dir.

    Args:
        project_dir: Project directory.
        package_id: Id of the installed package.
        version: Installed version.
        source: Package source location. Overrides the configured source.
        config_path: Optional YAML config file.

    Returns:
        Process exit code.
    """
    try:
        config = _load_config(config_path)
        target = source or config.source
        if not target:
            logger.error("No package source given. Use --source or PKG_REINSTALL_SOURCE")
            return 1

        package_source = open_source(target, prefix=config.redis_prefix)
        project = FileProject(project_dir, package_source, config)
        identity = PackageIdentity.parse(package_id, version)

        ReinstallOrchestrator(project).execute(identity)
    except ReinstallError as e:
        logger.error("Reinstall failed: %s", e)
        return 1
    except ValueError as e:
        logger.error("Invalid arguments: %s", e)
        return 1

    print(f"Reinstalled {identity} in {project.name}")
    return 0


def list_items(project_dir: Path, config_path: Path | None = None) -> int:
    """Print installed packages and references of a project.

    Returns:
        Process exit code.
    """
    try:
        config = _load_config(config_path)
        # Listing never resolves packages, so no real source is needed
        project = FileProject(project_dir, MemoryPackageSource(), config)
    except ReinstallError as e:
        logger.error("Cannot read project: %s", e)
        return 1

    packages = project.installed_packages()
    print(f"Packages in {project.name}:")
    for package in packages:
        print(f"  {package.identity}")

    references = project.references()
    print("References:")
    for reference in references:
        flag = "local copy" if reference.local_copy else "no local copy"
        print(f"  {reference.name} ({reference.kind.value}, {flag})")

    print(f"\n{len(packages)} package(s), {len(references)} reference(s)")
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for the reinstall CLI.

    Returns:
        Configured ArgumentParser.
    """
    parser = argparse.ArgumentParser(
        description="Reinstall packages without losing project reference settings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Reinstall from a directory of YAML manifests
  pkg-reinstall reinstall \\
    --project ./MyProject \\
    --source ./feed \\
    MyPackage 1.2.3.4

  # Reinstall from Redis
  pkg-reinstall reinstall \\
    --project ./MyProject \\
    --source redis://localhost:6379 \\
    MyPackage 1.2.3.4

  # Show what is installed
  pkg-reinstall list --project ./MyProject
""",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # reinstall
    re_cmd = subparsers.add_parser(
        "reinstall",
        help="Uninstall and install a package again",
    )
    re_cmd.add_argument(
        "--project",
        type=Path,
        required=True,
        help="Project directory",
    )
    re_cmd.add_argument(
        "--source",
        help="Package source (directory, file:// or redis:// URL)",
    )
    re_cmd.add_argument(
        "--config",
        type=Path,
        help="YAML configuration file",
    )
    re_cmd.add_argument("package", help="Package id")
    re_cmd.add_argument("version", help="Installed package version")

    # list
    ls = subparsers.add_parser(
        "list",
        help="List installed packages and references",
    )
    ls.add_argument(
        "--project",
        type=Path,
        required=True,
        help="Project directory",
    )
    ls.add_argument(
        "--config",
        type=Path,
        help="YAML configuration file",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the reinstall CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    if args.command == "reinstall":
        return reinstall(args.project, args.package, args.version, args.source, args.config)
    elif args.command == "list":
        return list_items(args.project, args.config)
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
