"""Choice of the action and of its task sequence."""

from __future__ import annotations

from pyparcel.errors import ExclusiveOptionError
from pyparcel.publish.options import CommandOptions
from pyparcel.publish.types import ActionType

# Options that each select an action, by CLI spelling.
EXCLUSIVE_OPTIONS: dict[str, ActionType] = {
    "--list-unpublished": ActionType.LIST,
    "--promote": ActionType.PROMOTE,
    "--backport": ActionType.BACKPORT,
}

TASK_SEQUENCES: dict[ActionType, tuple[str, ...]] = {
    ActionType.PUBLISH: (
        "check_repository",
        "check_integrity",
        "find_unpublished",
        "resolve_release_types",
        "update_versions",
        "update_dependents",
        "cut_off_changelogs",
        "commit_changes",
        "publish_packages",
        "grant_access",
    ),
    ActionType.LIST: (
        "check_integrity",
        "find_unpublished",
        "resolve_release_types",
        "list_unpublished",
    ),
    ActionType.PROMOTE: (
        "check_repository",
        "check_integrity",
        "find_promotable",
        "resolve_release_types",
        "update_versions",
        "update_dependents",
        "cut_off_changelogs",
        "commit_changes",
        "promote_packages",
    ),
    ActionType.BACKPORT: (
        "check_repository",
        "check_integrity",
        "find_unpublished",
        "resolve_release_types",
        "update_versions",
        "commit_changes",
        "publish_packages",
    ),
}

_missing = set(ActionType) - set(TASK_SEQUENCES)
if _missing:
    raise RuntimeError(f"No task sequence for {sorted(a.value for a in _missing)}")


def resolve_action(options: CommandOptions) -> ActionType:
    """Pick the action selected by the options.

    Raises:
        ExclusiveOptionError: If more than one action-selecting option is set.
    """
    values = {
        "--list-unpublished": options.list_unpublished,
        "--promote": options.promote,
        "--backport": options.backport,
    }
    selected = [flag for flag, value in values.items() if value]
    if len(selected) > 1:
        raise ExclusiveOptionError(selected)
    if selected:
        return EXCLUSIVE_OPTIONS[selected[0]]
    return ActionType.PUBLISH


def task_sequence(action: ActionType) -> tuple[str, ...]:
    """Names of the tasks run for ``action``, in order."""
    return TASK_SEQUENCES[action]
