from __future__ import annotations

from datetime import date
from typing import Iterable

from rec_league.models import GameRecap, GameResult, ScheduledGame
from rec_league.standings import find_score

PLACEHOLDER_MARKERS = ("SEED", "WINNER", "LOSER", "GM")


def game_status(game: ScheduledGame, today: date) -> str:
    if game.is_playoff:
        return "playoff"
    if game.game_date < today:
        return "completed"
    if game.game_date == today:
        return "today"
    return "scheduled"


def is_placeholder_team(team: str) -> bool:
    return any(marker in team for marker in PLACEHOLDER_MARKERS)


def list_teams(games: Iterable[ScheduledGame | GameRecap]) -> list[str]:
    teams: set[str] = set()
    for game in games:
        for team in (game.team_a, game.team_b):
            if not is_placeholder_team(team):
                teams.add(team)
    return sorted(teams)


def filter_games(games: Iterable[ScheduledGame], team: str | None = None) -> list[ScheduledGame]:
    ordered = sorted(games, key=lambda g: (g.game_date, g.time))
    if team is None:
        return ordered
    return [g for g in ordered if g.involves(team)]


def score_for_game(game: ScheduledGame, results: list[GameResult]) -> GameResult | None:
    """Find the final score for a scheduled game, oriented as listed on the schedule."""
    if game.game_id:
        for result in results:
            if result.game_id != game.game_id:
                continue
            if result.team_a == game.team_b and result.team_b == game.team_a:
                return result.swapped()
            return result
    return find_score(results, game.game_date, game.team_a, game.team_b)


def recap_for_game(game: ScheduledGame, recaps: Iterable[GameRecap]) -> GameRecap | None:
    if not game.game_id:
        return None
    return next((r for r in recaps if r.game_id == game.game_id), None)


def filter_recaps(recaps: Iterable[GameRecap], team: str | None = None, query: str = "") -> list[GameRecap]:
    """Recaps involving ``team`` whose teams or player of the match contain ``query``."""
    needle = query.strip().lower()
    out = []
    for recap in recaps:
        if team is not None and team not in recap.team_a and team not in recap.team_b:
            continue
        if needle and not any(
            needle in value.lower() for value in (recap.team_a, recap.team_b, recap.player_of_the_match)
        ):
            continue
        out.append(recap)
    return out
