"""NHL stats API catalog and the team/player pipelines built on it.

Team record:
    TeamID, TeamName, TeamVenueName, GamesPlayed, GamesWon, GamesLost,
    Points, GoalsPerGame, DateOfFirstGameInSeason, OpponentInFirstGameInSeason

Player record:
    PlayerID, PlayerName, CurrentTeam, PlayerAge, PlayerNumber,
    PlayerPosition, IsCurrentlyRookie, Assists, Goals, PlayerGames,
    PlayerHits, PlayerPoints

Seasons are given as the year they open in. A season runs from October to
the following May; the schedule endpoint wants ISO dates, the player stats
endpoint wants the eight digit ``20192020`` form.
"""

import logging
from datetime import date
from typing import Any

from apiweave.config import settings

logger = logging.getLogger(__name__)

DEFAULT_ID = 1
MIN_SEASON = 1900
SEASON_START_MONTH = 10  # October


def nhl_catalog(base_uri: str | None = None) -> dict[str, Any]:
    """Catalog definition for the public NHL stats API."""
    return {
        "slug": "NHLPublicAPI",
        "parentURI": base_uri or settings.nhl_api_base,
        "version": "v1",
        "endpoints": [
            {
                "slug": "Teams",
                "request": "teams",
                "useCache": True,
                "cacheTTL": 300,
                "modifiers": [{"handle": "expand"}, {"handle": "teamId"}, {"handle": "stats"}],
            },
            {
                "slug": "TeamByID",
                "request": "teams/{id}",
                "useCache": True,
                "parameters": ["id"],
                "modifiers": [{"handle": "expand"}, {"handle": "stats"}],
            },
            {
                "slug": "TeamRoster",
                "request": "teams/{id}/roster",
                "useCache": True,
                "parameters": ["id"],
            },
            {
                "slug": "TeamStats",
                "request": "teams/{id}/stats",
                "useCache": True,
                "parameters": ["id"],
            },
            {
                "slug": "TeamSchedule",
                "request": "schedule",
                "useCache": True,
                "modifiers": [{"handle": "teamId"}, {"handle": "startDate"}, {"handle": "endDate"}],
            },
            {
                "slug": "PlayerInfo",
                "request": "people/{id}",
                "useCache": True,
                "parameters": ["id"],
            },
            {
                "slug": "PlayerStatsBySeason",
                "request": "people/{id}/stats",
                "useCache": True,
                "parameters": ["id"],
                "modifiers": [{"handle": "stats"}, {"handle": "season"}],
            },
        ],
    }


def first_game_opponent(
    teams: Any, context: dict[str, Any], record: dict[str, Any]
) -> str:
    """Name of whichever side of the first game is not the requested team."""
    if not isinstance(teams, dict) or not teams.get("away") or not teams.get("home"):
        return "N/A"
    away = teams["away"].get("team", {})
    home = teams["home"].get("team", {})
    if away.get("id") != record.get("TeamID"):
        return away.get("name", "N/A")
    return home.get("name", "N/A")


def team_pipeline(base_uri: str | None = None) -> dict[str, Any]:
    """Team id + season -> one flat team record."""
    return {
        "handle": "TeamPipeline",
        "apiDefs": [nhl_catalog(base_uri)],
        "workUnits": [
            {
                "apiSlug": "NHLPublicAPI",
                "endpointSlug": "TeamByID",
                "rename": [
                    {"find": "teams[0][id]", "replace": "teamId"},
                    {"find": "teams[0][name]", "replace": "teamName"},
                ],
                "priority": 1,
            },
            {
                "apiSlug": "NHLPublicAPI",
                "endpointSlug": "TeamSchedule",
                "depMods": [
                    {"key": "teamId", "value": "teamId"},
                    {"key": "startDate", "value": "startDate"},
                    {"key": "endDate", "value": "endDate"},
                ],
                "priority": 3,
            },
            {
                "apiSlug": "NHLPublicAPI",
                "endpointSlug": "TeamStats",
                "rename": [{"find": "teams[0][id]", "replace": "teamId"}],
                "depParams": [{"key": "id", "value": "teamId"}],
                "priority": 2,
            },
        ],
        "outputTransform": [
            {"find": "id", "replace": "TeamID"},
            {"find": "teams[0][name]", "replace": "TeamName"},
            {"find": "teams[0][venue][name]", "replace": "TeamVenueName"},
            {"find": "stats[0][splits][0][stat][gamesPlayed]", "replace": "GamesPlayed"},
            {"find": "stats[0][splits][0][stat][wins]", "replace": "GamesWon"},
            {"find": "stats[0][splits][0][stat][losses]", "replace": "GamesLost"},
            {"find": "stats[0][splits][0][stat][pts]", "replace": "Points"},
            {"find": "stats[0][splits][0][stat][goalsPerGame]", "replace": "GoalsPerGame"},
            {"find": "dates[0][games][0][gameDate]", "replace": "DateOfFirstGameInSeason"},
            {
                "find": "dates[0][games][0][teams]",
                "replace": "OpponentInFirstGameInSeason",
                "parseCustom": first_game_opponent,
            },
        ],
    }


def player_pipeline(base_uri: str | None = None) -> dict[str, Any]:
    """Player id + season -> one flat player record."""
    return {
        "handle": "PlayerPipeline",
        "apiDefs": [nhl_catalog(base_uri)],
        "workUnits": [
            {
                "apiSlug": "NHLPublicAPI",
                "endpointSlug": "PlayerInfo",
                "rename": [{"find": "people[0][id]", "replace": "personId"}],
                "priority": 1,
                "depParams": [{"key": "id", "value": "personId"}],
            },
            {
                "apiSlug": "NHLPublicAPI",
                "endpointSlug": "PlayerStatsBySeason",
                "priority": 2,
                "depParams": [{"key": "id", "value": "personId"}],
                "depMods": [
                    {"key": "stats", "value": "stats"},
                    {"key": "season", "value": "season"},
                ],
            },
        ],
        "outputTransform": [
            {"find": "personId", "replace": "PlayerID"},
            {"find": "people[0][fullName]", "replace": "PlayerName"},
            {"find": "people[0][currentTeam][name]", "replace": "CurrentTeam"},
            {"find": "people[0][currentAge]", "replace": "PlayerAge"},
            {"find": "people[0][primaryNumber]", "replace": "PlayerNumber"},
            {"find": "people[0][primaryPosition][name]", "replace": "PlayerPosition"},
            {"find": "people[0][rookie]", "replace": "IsCurrentlyRookie"},
            {"find": "stats[0][splits][0][stat][assists]", "replace": "Assists"},
            {"find": "stats[0][splits][0][stat][goals]", "replace": "Goals"},
            {"find": "stats[0][splits][0][stat][games]", "replace": "PlayerGames"},
            {"find": "stats[0][splits][0][stat][hits]", "replace": "PlayerHits"},
            {"find": "stats[0][splits][0][stat][points]", "replace": "PlayerPoints"},
        ],
    }


def resolve_season(season: str | int | None, today: date | None = None) -> int:
    """Opening year of the requested season.

    Missing, non-numeric or out of range values (before 1900 or after the
    current year) fall back to the most recently started season: the current
    year from October on, the previous year before that.
    """
    today = today or date.today()
    try:
        year = int(season) if season is not None else None
    except (TypeError, ValueError):
        year = None

    if year is None or year < MIN_SEASON or year > today.year:
        fallback = today.year if today.month >= SEASON_START_MONTH else today.year - 1
        logger.warning(
            "Empty or invalid season %r, using most recently started season %d",
            season, fallback,
        )
        return fallback
    return year


def resolve_id(value: str | int | None) -> int:
    """Positive integer id, or DEFAULT_ID when missing or invalid."""
    try:
        parsed = int(value) if value is not None else None
    except (TypeError, ValueError):
        parsed = None

    if parsed is None or parsed < 1:
        logger.warning("No or invalid ID %r passed, using default of %d", value, DEFAULT_ID)
        return DEFAULT_ID
    return parsed


def team_bindings(
    team_id: str | int | None = None,
    season: str | int | None = None,
    today: date | None = None,
) -> dict[str, Any]:
    """Initial context for the team pipeline: ``{id, startDate, endDate}``."""
    year = resolve_season(season, today)
    return {
        "id": resolve_id(team_id),
        "startDate": f"{year}-10-01",
        "endDate": f"{year + 1}-05-01",
    }


def player_bindings(
    player_id: str | int | None = None,
    season: str | int | None = None,
    today: date | None = None,
) -> dict[str, Any]:
    """Initial context for the player pipeline: ``{id, season, stats}``."""
    year = resolve_season(season, today)
    return {
        "id": resolve_id(player_id),
        "season": f"{year}{year + 1}",
        "stats": "statsSingleSeason",
    }
