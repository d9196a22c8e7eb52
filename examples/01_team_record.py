"""Example 1: Team Record

This example shows the most basic usage of apiweave:
running the bundled NHL team pipeline for one team and one season.

The run hits the public NHL stats API (or whatever NHL_API_BASE points at)
and caches every response under ./cache, so a second run is served locally.
"""

import asyncio

from apiweave.clients import HttpxTransport
from apiweave.export import write_csv
from apiweave.pipeline import PipelineExecutor, RunState
from apiweave.presets import team_bindings, team_pipeline


async def build_record(team_id: int, season: int) -> dict:
    """Run the team pipeline and return the flat record."""
    async with HttpxTransport() as transport:
        executor = PipelineExecutor(team_pipeline(), transport=transport, cache_dir="cache")
        run = executor.start(team_bindings(team_id, season))

        try:
            return await run.execute()
        finally:
            print(f"  ✓ Run finished in state {run.state.value}")
            if run.state is RunState.FAILED:
                print(f"  ✗ Failed at work unit {run.unit_index}: {run.error}")


def main():
    """Run team record example."""
    print("=" * 60)
    print("apiweave — Example 1: Team Record")
    print("=" * 60)
    print()

    # Step 1: Run the pipeline
    print("Step 1: Fetching Washington Capitals, season 2019...")
    record = asyncio.run(build_record(team_id=15, season=2019))
    print()

    # Step 2: Show the record
    print("Step 2: Record")
    for key, value in record.items():
        print(f"  {key:<30} {value}")
    print()

    # Step 3: Export
    print("Step 3: Writing CSV...")
    path = write_csv(record, "teamOutput.csv")
    print(f"  ✓ Saved to {path}")


if __name__ == "__main__":
    main()
