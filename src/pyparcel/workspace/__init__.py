"""Workspace discovery."""

from pyparcel.workspace.package import Package
from pyparcel.workspace.pyproject import (
    dependency_name,
    read_package,
    set_dependency_versions,
    set_version,
)
from pyparcel.workspace.workspace import Workspace, WorkspaceProjectInfo, WorkspacesInfo

__all__ = [
    "Package",
    "Workspace",
    "WorkspaceProjectInfo",
    "WorkspacesInfo",
    "dependency_name",
    "read_package",
    "set_dependency_versions",
    "set_version",
]
