"""Install and uninstall steps.

Each step performs one package operation against a project and reports
reference and file changes on an EventBus.
"""

from pkg_reinstall.steps.install import InstallStep
from pkg_reinstall.steps.uninstall import UninstallStep

__all__ = [
    "InstallStep",
    "UninstallStep",
]
