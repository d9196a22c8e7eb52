"""Bundled catalogs and pipelines."""

from apiweave.presets.nhl import (
    nhl_catalog,
    player_bindings,
    player_pipeline,
    team_bindings,
    team_pipeline,
)

__all__ = [
    "nhl_catalog",
    "player_bindings",
    "player_pipeline",
    "team_bindings",
    "team_pipeline",
]
