"""Plumbing shared by CLI commands."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Generic, TypeVar

from pyparcel.workspace import Workspace

TResult = TypeVar("TResult")


@dataclass(frozen=True)
class CommandContext:
    """What a command runs against.

    Attributes:
        workspace: The discovered workspace.
        dry_run: Preview only. Nothing outside the process is changed.
    """

    workspace: Workspace
    dry_run: bool = False

    @property
    def root(self) -> Path:
        return self.workspace.root


class Command(ABC, Generic[TResult]):
    """An awaitable unit of CLI work over one workspace."""

    def __init__(self, context: CommandContext) -> None:
        self.context = context
        self.workspace = context.workspace

    def validate(self) -> list[str]:
        """Problems that make running the command pointless, empty when none."""
        return []

    @abstractmethod
    async def execute(self) -> TResult: ...
