"""Pipeline execution — work units → context → record.

Components:
- Definitions: catalogs, work units, output transforms
- Paths: dotted/bracketed lookups, rename, projection
- Executor: sequential runs with a shared execution context
"""

from apiweave.pipeline.definitions import (
    OutputTransformRule,
    PipelineDefinition,
    RenameRule,
    WorkUnit,
)
from apiweave.pipeline.executor import PipelineExecutor, PipelineRun, RunState
from apiweave.pipeline.paths import MISSING, project, rename_in_place, resolve

__all__ = [
    "MISSING",
    "OutputTransformRule",
    "PipelineDefinition",
    "PipelineExecutor",
    "PipelineRun",
    "RenameRule",
    "RunState",
    "WorkUnit",
    "project",
    "rename_in_place",
    "resolve",
]
