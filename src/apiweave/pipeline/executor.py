"""PipelineExecutor — work units → shared context → projected record.

Each run threads one execution context through the work units:

1. Seed the context with the caller's bindings
2. For every work unit, in ascending priority:
   - fetch its endpoint, offering the whole context as parameter and
     modifier bindings (dependent params/modifiers override by name)
   - parse the body and apply the unit's rename rules
   - merge the result on top of the context (last writer wins)
3. Project the context through the output transforms

Units run strictly one after another: a later unit's bindings may depend on
values only an earlier unit produced, and the merge order is observable.

Usage:
    async with HttpxTransport() as transport:
        executor = PipelineExecutor(team_pipeline(), transport=transport)
        record = await executor.run({"id": 15, "startDate": "2019-10-01"})
"""

import json
import logging
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any

from apiweave.clients.dispatcher import Dispatcher
from apiweave.clients.transport import Transport
from apiweave.errors import PayloadError, TransportError, ValidationError
from apiweave.pipeline.definitions import PipelineDefinition, WorkUnit
from apiweave.pipeline.paths import project, rename_in_place

logger = logging.getLogger(__name__)

# Key used when a response body is JSON but not an object
RESPONSE_KEY = "response"


class RunState(str, Enum):
    """Lifecycle of a single pipeline run."""

    IDLE = "idle"
    RUNNING = "running"
    PROJECTING = "projecting"
    DONE = "done"
    FAILED = "failed"


class PipelineRun:
    """A single execution of a pipeline, owning its context.

    Attributes:
        state: Current RunState
        unit_index: Index (in execution order) of the unit being fetched
        context: Execution context accumulated so far
        record: Final record once DONE, otherwise None
        error: Exception that moved the run to FAILED
    """

    def __init__(self, executor: "PipelineExecutor", initial_bindings: Mapping[str, Any]) -> None:
        self.executor = executor
        self.state = RunState.IDLE
        self.unit_index: int | None = None
        self.context: dict[str, Any] = dict(initial_bindings)
        self.record: dict[str, Any] | None = None
        self.error: Exception | None = None

    async def execute(self) -> dict[str, Any]:
        """Run every work unit, then project.

        Returns:
            The projected record, or the full context when the pipeline
            declares no output transforms

        Raises:
            RuntimeError: If this run was already executed
            TransportError: If any fetch fails; no partial record is produced
            PayloadError: If a response body is not valid JSON

        Any exception raised while fetching or projecting moves the run to
        FAILED before it propagates.
        """
        if self.state is not RunState.IDLE:
            raise RuntimeError(f"Pipeline run already {self.state.value}")

        definition = self.executor.definition
        logger.info("[%s] Starting run with %s", definition.handle, sorted(self.context))

        try:
            for index, unit in enumerate(definition.ordered_work_units):
                self.state = RunState.RUNNING
                self.unit_index = index
                await self._run_unit(unit)
        except Exception as e:
            self._fail(e)
            logger.error(
                "[%s] Run failed at work unit %s: %s",
                definition.handle, self.unit_index, e,
            )
            raise

        self.state = RunState.PROJECTING
        try:
            if definition.output_transforms:
                record = project(self.context, definition.output_transforms)
            else:
                record = dict(self.context)
        except Exception as e:
            self._fail(e)
            logger.error("[%s] Projection failed: %s", definition.handle, e)
            raise

        self.record = record
        self.state = RunState.DONE
        logger.info("[%s] Run complete: %d keys", definition.handle, len(record))
        return record

    def _fail(self, error: Exception) -> None:
        self.state = RunState.FAILED
        self.error = error
        self.record = None

    def _bindings(self, dependents: Mapping[str, str]) -> dict[str, Any]:
        bindings = dict(self.context)
        for remote_name, context_key in dependents.items():
            if context_key in self.context:
                bindings[remote_name] = self.context[context_key]
            else:
                logger.debug(
                    "Dependent binding %s <- %s not in context yet", remote_name, context_key
                )
        return bindings

    async def _run_unit(self, unit: WorkUnit) -> None:
        dispatcher = self.executor.dispatcher(unit.api_slug)
        result = await dispatcher.fetch(
            unit.endpoint_slug,
            params=self._bindings(unit.dependent_params),
            modifiers=self._bindings(unit.dependent_modifiers),
        )

        try:
            parsed = json.loads(result.body)
        except ValueError as e:
            raise PayloadError(result.uri, f"Invalid JSON response: {e}") from e

        if not isinstance(parsed, dict):
            parsed = {RESPONSE_KEY: parsed}

        for rule in unit.rename_rules:
            rename_in_place(parsed, rule.find, rule.replace)

        self.context.update(parsed)
        logger.debug(
            "Merged %s/%s (%d keys, cached=%s)",
            unit.api_slug, unit.endpoint_slug, len(parsed), result.from_cache,
        )


class PipelineExecutor:
    """Runs a validated pipeline definition against its dispatchers.

    Executors hold no per-run state, so several runs may be in flight at
    once; runs sharing a dispatcher share its cache.

    Args:
        definition: PipelineDefinition or a mapping validated into one
        transport: Transport for the dispatchers this executor creates
        dispatchers: Pre-built dispatchers by catalog slug; catalogs not
            covered get a new Dispatcher using ``transport``
        cache_dir: Cache directory for created dispatchers

    Raises:
        ValidationError: If the definition is malformed, or a catalog has
            neither a dispatcher nor a transport to build one with
    """

    def __init__(
        self,
        definition: PipelineDefinition | Mapping[str, Any],
        transport: Transport | None = None,
        dispatchers: Mapping[str, Dispatcher] | None = None,
        cache_dir: str | Path | None = None,
    ) -> None:
        self.definition = PipelineDefinition.from_mapping(definition)
        self._dispatchers: dict[str, Dispatcher] = {}

        supplied = dict(dispatchers or {})
        for catalog in self.definition.catalogs:
            if catalog.slug in supplied:
                self._dispatchers[catalog.slug] = supplied[catalog.slug]
            elif transport is not None:
                self._dispatchers[catalog.slug] = Dispatcher(
                    catalog, transport, cache_dir=cache_dir
                )
            else:
                raise ValidationError(
                    f"No dispatcher or transport available for catalog '{catalog.slug}'"
                )

    @property
    def handle(self) -> str:
        return self.definition.handle

    def dispatcher(self, api_slug: str) -> Dispatcher:
        return self._dispatchers[api_slug]

    def start(self, initial_bindings: Mapping[str, Any] | None = None) -> PipelineRun:
        """Create a new, not yet executed run."""
        return PipelineRun(self, initial_bindings or {})

    async def run(self, initial_bindings: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """Execute one run and return its record."""
        return await self.start(initial_bindings).execute()
