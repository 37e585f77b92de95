from __future__ import annotations

from datetime import date
from typing import Any, Iterable

from rec_league.models import GameResult, TeamStanding


def compute_standings(results: Iterable[GameResult]) -> list[TeamStanding]:
    """Aggregate game results into a ranked standings table.

    Ties add points for both teams but count as neither a win nor a loss.
    Ranking is by wins, then average point differential, then team name.
    """
    team_rows: dict[str, dict[str, int]] = {}
    for game in results:
        for team in (game.team_a, game.team_b):
            if team not in team_rows:
                team_rows[team] = {"wins": 0, "losses": 0, "points_for": 0, "points_against": 0}

        team_rows[game.team_a]["points_for"] += game.score_a
        team_rows[game.team_a]["points_against"] += game.score_b
        team_rows[game.team_b]["points_for"] += game.score_b
        team_rows[game.team_b]["points_against"] += game.score_a

        if game.score_a > game.score_b:
            team_rows[game.team_a]["wins"] += 1
            team_rows[game.team_b]["losses"] += 1
        elif game.score_b > game.score_a:
            team_rows[game.team_b]["wins"] += 1
            team_rows[game.team_a]["losses"] += 1

    standings = [
        TeamStanding(
            team=team,
            wins=row["wins"],
            losses=row["losses"],
            points_for=row["points_for"],
            points_against=row["points_against"],
        )
        for team, row in team_rows.items()
    ]
    return sorted(standings, key=lambda s: (-s.wins, -s.avg_point_differential, s.team))


def find_score(
    results: Iterable[GameResult],
    game_date: date,
    team_a: str,
    team_b: str,
) -> GameResult | None:
    """Look up a result by date and teams, oriented as ``team_a`` vs ``team_b``."""
    reversed_match: GameResult | None = None
    for game in results:
        if game.game_date != game_date:
            continue
        if game.team_a == team_a and game.team_b == team_b:
            return game
        if reversed_match is None and game.team_a == team_b and game.team_b == team_a:
            reversed_match = game.swapped()
    return reversed_match


def summarize_scores(results: Iterable[GameResult]) -> dict[str, Any]:
    games = list(results)
    total_points = sum(g.score_a + g.score_b for g in games)
    teams = {g.team_a for g in games} | {g.team_b for g in games}
    return {
        "total_games": len(games),
        "total_points": total_points,
        "average_points_per_game": round(total_points / len(games), 1) if games else 0.0,
        "total_teams": len(teams),
    }
