"""pyparcel - release coordinator for Python monorepos."""

from pyparcel.errors import PyParcelError
from pyparcel.publish import ActionType, CommandOptions, Pipeline, PipelineResult, PublishContext
from pyparcel.workspace import Workspace

__version__ = "0.1.0"

__all__ = [
    "ActionType",
    "CommandOptions",
    "Pipeline",
    "PipelineResult",
    "PublishContext",
    "PyParcelError",
    "Workspace",
    "__version__",
]
