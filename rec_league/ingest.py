from __future__ import annotations

import io
import logging
from datetime import date, datetime
from typing import Any

import pandas as pd

from rec_league.errors import IngestError
from rec_league.models import GameRecap, GameResult, ScheduledGame

logger = logging.getLogger(__name__)

NO_GAME = "No Game"
PLAYOFF_MARKERS = ("SEED", "WINNER", "LOSER")

# Canonical column -> header spellings accepted in uploaded files, first match wins.
SCORE_COLUMNS: dict[str, tuple[str, ...]] = {
    "game_id": ("gameID", "GameID", "game_id", "Game ID"),
    "date": ("Date", "date"),
    "team_a": ("Team 1", "Team1", "team1", "team_1"),
    "team_b": ("Team 2", "Team2", "team2", "team_2"),
    "score_a": ("Score 1", "Score1", "score1", "score_1"),
    "score_b": ("Score 2", "Score2", "score2", "score_2"),
}

SCHEDULE_COLUMNS: dict[str, tuple[str, ...]] = {
    "game_id": SCORE_COLUMNS["game_id"],
    "date": SCORE_COLUMNS["date"],
    "team_a": SCORE_COLUMNS["team_a"],
    "team_b": SCORE_COLUMNS["team_b"],
    "time": ("Time", "time"),
    "location": ("Location", "location"),
}

RECAP_COLUMNS: dict[str, tuple[str, ...]] = {
    **SCORE_COLUMNS,
    "game_id": ("gameID", "GameID", "gameId", "game_id", "Game ID"),
    "time": ("Time", "time"),
    "location": ("Location", "location"),
    "highlights": ("Highlights", "highlights"),
    "player_of_the_match": ("Player of the Match", "playerOfTheMatch", "player_of_the_match"),
    "attendance": ("Attendance", "attendance"),
    "weather": ("Weather", "weather"),
    "recap": ("Recap", "recap"),
}


def read_csv_rows(content: str, columns: dict[str, tuple[str, ...]]) -> list[tuple[int, dict[str, str]]]:
    """Read CSV text and map its headers onto canonical column names.

    Returns ``(line_number, row)`` pairs with blank and "No Game" rows removed.
    Columns absent from the file come back as empty strings.
    """
    if not content or not content.strip():
        raise IngestError("CSV file is empty")
    try:
        frame = pd.read_csv(
            io.StringIO(content.strip()),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            index_col=False,
        )
    except (pd.errors.EmptyDataError, pd.errors.ParserError) as exc:
        raise IngestError(f"Could not read CSV content: {exc}") from exc

    frame.columns = [str(c).strip() for c in frame.columns]
    frame = frame.fillna("")

    mapped = pd.DataFrame(index=frame.index)
    for canonical, aliases in columns.items():
        source = next((alias for alias in aliases if alias in frame.columns), None)
        mapped[canonical] = frame[source].astype(str).str.strip() if source else ""

    rows: list[tuple[int, dict[str, str]]] = []
    for offset, row in enumerate(mapped.to_dict("records")):
        values = [v for v in row.values() if v]
        if not values or all(v == NO_GAME for v in values):
            continue
        # Header is line 1.
        rows.append((offset + 2, row))
    return rows


def parse_game_date(raw: str) -> date:
    value = raw.strip()
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass
    for fmt in ("%m/%d/%y", "%m/%d/%Y"):
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    raise IngestError(f"Unrecognised date: {raw!r}")


def normalize_time(raw: str) -> str:
    """Convert ``H:MM`` to 24-hour ``HH:MM``; games from 5 to 11 o'clock are evening games."""
    try:
        hours_raw, minutes = raw.strip().split(":", 1)
        hours = int(hours_raw)
        if len(minutes) != 2 or not minutes.isdigit():
            raise ValueError(minutes)
    except ValueError as exc:
        raise IngestError(f"Unrecognised time: {raw!r}") from exc
    if 5 <= hours < 12:
        hours += 12
    return f"{hours:02d}:{minutes}"


def is_playoff_matchup(team_a: str, team_b: str) -> bool:
    return any(marker in team for team in (team_a, team_b) for marker in PLAYOFF_MARKERS)


def _parse_score(raw: str, label: str) -> int:
    try:
        value = int(raw)
    except ValueError as exc:
        raise IngestError(f"{label} is not a whole number: {raw!r}") from exc
    if value < 0:
        raise IngestError(f"{label} is negative: {value}")
    return value


def _missing(row: dict[str, str], fields: tuple[str, ...]) -> list[str]:
    return [f for f in fields if not row.get(f)]


def parse_scores_csv(content: str) -> tuple[list[GameResult], list[str]]:
    results: list[GameResult] = []
    errors: list[str] = []
    for line, row in read_csv_rows(content, SCORE_COLUMNS):
        missing = _missing(row, tuple(SCORE_COLUMNS))
        if missing:
            errors.append(f"Line {line}: missing {', '.join(missing)}")
            continue
        if row["team_a"] == row["team_b"]:
            errors.append(f"Line {line}: team plays itself ({row['team_a']})")
            continue
        try:
            results.append(
                GameResult(
                    game_id=row["game_id"],
                    game_date=parse_game_date(row["date"]),
                    team_a=row["team_a"],
                    team_b=row["team_b"],
                    score_a=_parse_score(row["score_a"], "Score 1"),
                    score_b=_parse_score(row["score_b"], "Score 2"),
                )
            )
        except IngestError as exc:
            errors.append(f"Line {line}: {exc}")

    for message in errors:
        logger.warning("Rejected score row. %s", message)
    return results, errors


def parse_schedule_csv(content: str, default_location: str = "") -> tuple[list[ScheduledGame], list[str]]:
    games: list[ScheduledGame] = []
    errors: list[str] = []
    for line, row in read_csv_rows(content, SCHEDULE_COLUMNS):
        missing = _missing(row, ("date", "team_a", "team_b", "time"))
        if missing:
            errors.append(f"Line {line}: missing {', '.join(missing)}")
            continue
        if NO_GAME in (row["team_a"], row["team_b"]):
            continue
        try:
            games.append(
                ScheduledGame(
                    game_id=row["game_id"] or None,
                    game_date=parse_game_date(row["date"]),
                    time=normalize_time(row["time"]),
                    team_a=row["team_a"],
                    team_b=row["team_b"],
                    location=row["location"] or default_location,
                    is_playoff=is_playoff_matchup(row["team_a"], row["team_b"]),
                )
            )
        except IngestError as exc:
            errors.append(f"Line {line}: {exc}")

    for message in errors:
        logger.warning("Skipped schedule row. %s", message)
    return games, errors


def _int_or_zero(raw: str) -> int:
    return int(raw) if raw.strip().lstrip("-").isdigit() else 0


def recap_from_row(row: dict[str, Any]) -> GameRecap:
    highlights = str(row.get("highlights") or "")
    return GameRecap(
        game_id=str(row["game_id"]),
        game_date=parse_game_date(str(row["date"])),
        time=str(row.get("time") or ""),
        team_a=str(row["team_a"]),
        team_b=str(row["team_b"]),
        score_a=_int_or_zero(str(row.get("score_a") or "")),
        score_b=_int_or_zero(str(row.get("score_b") or "")),
        location=str(row.get("location") or ""),
        highlights=tuple(h.strip() for h in highlights.split("|") if h.strip()),
        player_of_the_match=str(row.get("player_of_the_match") or ""),
        attendance=_int_or_zero(str(row.get("attendance") or "")),
        weather=str(row.get("weather") or ""),
        recap=str(row.get("recap") or ""),
    )


def parse_recaps_csv(content: str) -> tuple[list[GameRecap], list[str]]:
    recaps: list[GameRecap] = []
    errors: list[str] = []
    for line, row in read_csv_rows(content, RECAP_COLUMNS):
        missing = _missing(row, ("game_id", "date", "team_a", "team_b"))
        if missing:
            errors.append(f"Line {line}: missing {', '.join(missing)}")
            continue
        try:
            recaps.append(recap_from_row(row))
        except IngestError as exc:
            errors.append(f"Line {line}: {exc}")

    for message in errors:
        logger.warning("Skipped recap row. %s", message)
    return recaps, errors
