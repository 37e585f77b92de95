from __future__ import annotations

import logging

import pandas as pd

from rec_league.errors import IngestError
from rec_league.ingest import parse_schedule_csv, parse_scores_csv
from rec_league.models import GameRecap, GameResult, ScheduledGame, TeamStanding, UploadResult
from rec_league.standings import compute_standings
from rec_league.storage import LeagueStorage

logger = logging.getLogger(__name__)

STANDINGS_COLUMNS = ["Rank", "Team", "W", "L", "GP", "PF", "PA", "Diff", "Avg Diff"]


def import_schedule_csv(storage: LeagueStorage, content: str, default_location: str = "") -> UploadResult:
    try:
        games, errors = parse_schedule_csv(content, default_location=default_location)
    except IngestError as exc:
        return UploadResult(success=False, message=str(exc))

    if not games:
        return UploadResult(success=False, message="No valid games found in CSV", errors=tuple(errors))

    storage.save_schedule(games)
    logger.info("Imported schedule (games=%s, skipped=%s)", len(games), len(errors))
    return UploadResult(
        success=True,
        message="Schedule updated successfully",
        records_processed=len(games),
        errors=tuple(errors),
    )


def import_scores_csv(storage: LeagueStorage, content: str, require_scheduled: bool = True) -> UploadResult:
    try:
        results, errors = parse_scores_csv(content)
    except IngestError as exc:
        return UploadResult(success=False, message=str(exc))

    if not results:
        return UploadResult(
            success=False,
            message="No valid scores found in CSV. Make sure the gameID column is included.",
            errors=tuple(errors),
        )

    if require_scheduled:
        scheduled_ids = {g.game_id for g in storage.list_schedule() if g.game_id}
        missing = sorted({r.game_id for r in results if r.game_id not in scheduled_ids})
        if missing:
            return UploadResult(
                success=False,
                message=(
                    f"Game IDs not found in schedule: {', '.join(missing)}. "
                    "Please upload the schedule first."
                ),
                errors=tuple(errors),
            )

    storage.upsert_results(results)
    logger.info("Imported scores (games=%s, rejected=%s)", len(results), len(errors))
    return UploadResult(
        success=True,
        message="Scores updated successfully",
        records_processed=len(results),
        errors=tuple(errors),
    )


def recap_draft(game: ScheduledGame, result: GameResult) -> GameRecap:
    """Pre-fill a recap from the schedule entry and its final score."""
    return GameRecap(
        game_id=result.game_id,
        game_date=game.game_date,
        time=game.time,
        team_a=game.team_a,
        team_b=game.team_b,
        score_a=result.score_a,
        score_b=result.score_b,
        location=game.location,
    )


def save_recap(storage: LeagueStorage, recap: GameRecap) -> UploadResult:
    if not recap.game_id:
        return UploadResult(success=False, message="Invalid recap data: gameID is required")
    storage.upsert_recap(recap)
    logger.info("Saved recap for game_id=%s", recap.game_id)
    return UploadResult(success=True, message="Recap saved successfully", records_processed=1)


def delete_recap(storage: LeagueStorage, game_id: str) -> UploadResult:
    if not game_id:
        return UploadResult(success=False, message="gameID is required")
    if not storage.delete_recap(game_id):
        return UploadResult(success=False, message=f"No recap found for game {game_id}")
    logger.info("Deleted recap for game_id=%s", game_id)
    return UploadResult(success=True, message="Recap deleted successfully", records_processed=1)


def load_standings(storage: LeagueStorage) -> list[TeamStanding]:
    return compute_standings(storage.list_results())


def standings_frame(standings: list[TeamStanding]) -> pd.DataFrame:
    rows = [
        {
            "Rank": rank,
            "Team": s.team,
            "W": s.wins,
            "L": s.losses,
            "GP": s.games_played,
            "PF": s.points_for,
            "PA": s.points_against,
            "Diff": s.point_differential,
            "Avg Diff": round(s.avg_point_differential, 1),
        }
        for rank, s in enumerate(standings, start=1)
    ]
    return pd.DataFrame(rows, columns=STANDINGS_COLUMNS)
