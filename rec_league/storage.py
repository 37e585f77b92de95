from __future__ import annotations

import logging
import threading
from datetime import date
from pathlib import Path
from typing import Any, Iterable, Protocol

import duckdb
import pandas as pd

from rec_league.api import SupabaseClient
from rec_league.config import Settings
from rec_league.errors import IngestError, StorageUnavailable
from rec_league.ingest import (
    RECAP_COLUMNS,
    SCORE_COLUMNS,
    parse_game_date,
    parse_recaps_csv,
    parse_schedule_csv,
    parse_scores_csv,
    read_csv_rows,
)
from rec_league.models import GameRecap, GameResult, ScheduledGame

logger = logging.getLogger(__name__)

SCORES_FILE = "scores.csv"
SCHEDULE_FILE = "schedule.csv"
RECAPS_FILE = "recaps.csv"

# Canonical column -> header written to disk.
SCORE_FIELDS = {
    "game_id": "gameID",
    "date": "Date",
    "team_a": "Team 1",
    "team_b": "Team 2",
    "score_a": "Score 1",
    "score_b": "Score 2",
}
SCHEDULE_FIELDS = {
    "game_id": "gameID",
    "date": "Date",
    "time": "Time",
    "team_a": "Team 1",
    "team_b": "Team 2",
    "location": "Location",
}
RECAP_FIELDS = {
    "game_id": "gameID",
    "date": "Date",
    "time": "Time",
    "team_a": "Team 1",
    "team_b": "Team 2",
    "score_a": "Score 1",
    "score_b": "Score 2",
    "location": "Location",
    "highlights": "Highlights",
    "player_of_the_match": "Player of the Match",
    "attendance": "Attendance",
    "weather": "Weather",
    "recap": "Recap",
}


class LeagueStorage(Protocol):
    def list_results(self) -> list[GameResult]: ...

    def upsert_results(self, results: Iterable[GameResult]) -> None: ...

    def list_schedule(self) -> list[ScheduledGame]: ...

    def save_schedule(self, games: Iterable[ScheduledGame]) -> None: ...

    def list_recaps(self) -> list[GameRecap]: ...

    def upsert_recap(self, recap: GameRecap) -> None: ...

    def delete_recap(self, game_id: str) -> bool: ...


def _merge_rows(stored: list[dict[str, str]], incoming: list[dict[str, str]]) -> list[dict[str, str]]:
    """Overlay ``incoming`` rows on ``stored`` rows by game id.

    Stored rows with other ids, no id, or values that do not parse are kept
    exactly as they were read.
    """
    pending = {row["game_id"]: row for row in incoming}
    replaced: set[str] = set()
    merged: list[dict[str, str]] = []
    for row in stored:
        game_id = row["game_id"]
        if game_id in pending:
            merged.append(pending.pop(game_id))
            replaced.add(game_id)
        elif game_id not in replaced:
            merged.append(row)
    merged.extend(pending.values())
    return merged


def _score_row(result: GameResult) -> dict[str, str]:
    return {
        "game_id": result.game_id,
        "date": result.game_date.isoformat(),
        "team_a": result.team_a,
        "team_b": result.team_b,
        "score_a": str(result.score_a),
        "score_b": str(result.score_b),
    }


def _recap_row(recap: GameRecap) -> dict[str, str]:
    return {
        "game_id": recap.game_id,
        "date": recap.game_date.isoformat(),
        "time": recap.time,
        "team_a": recap.team_a,
        "team_b": recap.team_b,
        "score_a": str(recap.score_a),
        "score_b": str(recap.score_b),
        "location": recap.location,
        "highlights": "|".join(recap.highlights),
        "player_of_the_match": recap.player_of_the_match,
        "attendance": str(recap.attendance),
        "weather": recap.weather,
        "recap": recap.recap,
    }


class CsvStorage:
    """League data kept as flat CSV files in one directory.

    One instance may be shared between threads (the dashboard caches it), so
    every read and every read-modify-write of a file happens under one lock.
    """

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = data_dir
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()

    def _read(self, filename: str) -> str | None:
        path = self.data_dir / filename
        with self._lock:
            if not path.exists():
                return None
            try:
                content = path.read_text(encoding="utf-8")
            except OSError as exc:
                raise StorageUnavailable(f"Could not read {path}: {exc}") from exc
        return content if content.strip() else None

    def _stored_rows(self, filename: str, columns: dict[str, tuple[str, ...]]) -> list[dict[str, str]]:
        content = self._read(filename)
        if content is None:
            return []
        try:
            return [row for _, row in read_csv_rows(content, columns)]
        except IngestError as exc:
            raise StorageUnavailable(f"Could not read {self.data_dir / filename}: {exc}") from exc

    def _write(self, filename: str, rows: list[dict[str, str]], fields: dict[str, str]) -> None:
        path = self.data_dir / filename
        frame = pd.DataFrame(
            [{header: row.get(column, "") for column, header in fields.items()} for row in rows],
            columns=list(fields.values()),
        )
        with self._lock:
            try:
                frame.to_csv(path, index=False)
            except OSError as exc:
                raise StorageUnavailable(f"Could not write {path}: {exc}") from exc
        logger.info("Wrote %s rows to %s", len(rows), path)

    def list_results(self) -> list[GameResult]:
        content = self._read(SCORES_FILE)
        if content is None:
            return []
        results, _ = parse_scores_csv(content)
        return results

    def upsert_results(self, results: Iterable[GameResult]) -> None:
        incoming = [_score_row(r) for r in results]
        with self._lock:
            rows = _merge_rows(self._stored_rows(SCORES_FILE, SCORE_COLUMNS), incoming)
            self._write(SCORES_FILE, rows, SCORE_FIELDS)

    def list_schedule(self) -> list[ScheduledGame]:
        content = self._read(SCHEDULE_FILE)
        if content is None:
            return []
        games, _ = parse_schedule_csv(content)
        return games

    def save_schedule(self, games: Iterable[ScheduledGame]) -> None:
        rows = [
            {
                "game_id": g.game_id or "",
                "date": g.game_date.isoformat(),
                "time": g.time,
                "team_a": g.team_a,
                "team_b": g.team_b,
                "location": g.location,
            }
            for g in games
        ]
        self._write(SCHEDULE_FILE, rows, SCHEDULE_FIELDS)

    def list_recaps(self) -> list[GameRecap]:
        content = self._read(RECAPS_FILE)
        if content is None:
            return []
        recaps, _ = parse_recaps_csv(content)
        return recaps

    def upsert_recap(self, recap: GameRecap) -> None:
        with self._lock:
            rows = _merge_rows(self._stored_rows(RECAPS_FILE, RECAP_COLUMNS), [_recap_row(recap)])
            self._write(RECAPS_FILE, rows, RECAP_FIELDS)

    def delete_recap(self, game_id: str) -> bool:
        with self._lock:
            rows = self._stored_rows(RECAPS_FILE, RECAP_COLUMNS)
            remaining = [row for row in rows if row["game_id"] != game_id]
            if len(remaining) == len(rows):
                return False
            self._write(RECAPS_FILE, remaining, RECAP_FIELDS)
        return True


class DuckDBStorage:
    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> duckdb.DuckDBPyConnection:
        try:
            return duckdb.connect(str(self.db_path))
        except duckdb.Error as exc:
            raise StorageUnavailable(f"Could not open {self.db_path}: {exc}") from exc

    def _init_schema(self) -> None:
        try:
            self._create_tables()
        except duckdb.Error as exc:
            raise StorageUnavailable(f"Could not prepare schema in {self.db_path}: {exc}") from exc

    def _create_tables(self) -> None:
        with self._connect() as con:
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS scores (
                    game_id VARCHAR PRIMARY KEY,
                    game_date DATE,
                    team_a VARCHAR,
                    team_b VARCHAR,
                    score_a INTEGER,
                    score_b INTEGER
                );
                """
            )
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS schedules (
                    game_id VARCHAR,
                    game_date DATE,
                    game_time VARCHAR,
                    team_a VARCHAR,
                    team_b VARCHAR,
                    location VARCHAR,
                    is_playoff BOOLEAN
                );
                """
            )
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS recaps (
                    game_id VARCHAR PRIMARY KEY,
                    game_date DATE,
                    game_time VARCHAR,
                    team_a VARCHAR,
                    team_b VARCHAR,
                    score_a INTEGER,
                    score_b INTEGER,
                    location VARCHAR,
                    highlights VARCHAR[],
                    player_of_the_match VARCHAR,
                    attendance INTEGER,
                    weather VARCHAR,
                    recap VARCHAR
                );
                """
            )

    def _fetch(self, sql: str, params: list[Any] | None = None) -> list[tuple[Any, ...]]:
        try:
            with self._connect() as con:
                return con.execute(sql, params or []).fetchall()
        except duckdb.Error as exc:
            raise StorageUnavailable(f"DuckDB query failed ({self.db_path}): {exc}") from exc

    def list_results(self) -> list[GameResult]:
        rows = self._fetch(
            """
            SELECT game_id, game_date, team_a, team_b, score_a, score_b
            FROM scores
            ORDER BY game_date DESC, game_id
            """
        )
        return [
            GameResult(
                game_id=r[0],
                game_date=r[1],
                team_a=r[2],
                team_b=r[3],
                score_a=r[4],
                score_b=r[5],
            )
            for r in rows
        ]

    def upsert_results(self, results: Iterable[GameResult]) -> None:
        rows = [(r.game_id, r.game_date, r.team_a, r.team_b, r.score_a, r.score_b) for r in results]
        if not rows:
            return
        try:
            with self._connect() as con:
                con.executemany(
                    """
                    INSERT OR REPLACE INTO scores(game_id, game_date, team_a, team_b, score_a, score_b)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    rows,
                )
        except duckdb.Error as exc:
            raise StorageUnavailable(f"Could not store scores in {self.db_path}: {exc}") from exc
        logger.info("Upserted %s scores", len(rows))

    def list_schedule(self) -> list[ScheduledGame]:
        rows = self._fetch(
            """
            SELECT game_id, game_date, game_time, team_a, team_b, location, is_playoff
            FROM schedules
            ORDER BY game_date, game_time
            """
        )
        return [
            ScheduledGame(
                game_id=r[0],
                game_date=r[1],
                time=r[2],
                team_a=r[3],
                team_b=r[4],
                location=r[5],
                is_playoff=bool(r[6]),
            )
            for r in rows
        ]

    def save_schedule(self, games: Iterable[ScheduledGame]) -> None:
        rows = [(g.game_id, g.game_date, g.time, g.team_a, g.team_b, g.location, g.is_playoff) for g in games]
        try:
            with self._connect() as con:
                con.execute("DELETE FROM schedules")
                if rows:
                    con.executemany(
                        """
                        INSERT INTO schedules(game_id, game_date, game_time, team_a, team_b, location, is_playoff)
                        VALUES (?, ?, ?, ?, ?, ?, ?)
                        """,
                        rows,
                    )
        except duckdb.Error as exc:
            raise StorageUnavailable(f"Could not store schedule in {self.db_path}: {exc}") from exc
        logger.info("Replaced schedule with %s games", len(rows))

    def list_recaps(self) -> list[GameRecap]:
        rows = self._fetch(
            """
            SELECT game_id, game_date, game_time, team_a, team_b, score_a, score_b, location,
                   highlights, player_of_the_match, attendance, weather, recap
            FROM recaps
            ORDER BY game_date DESC, game_id
            """
        )
        return [
            GameRecap(
                game_id=r[0],
                game_date=r[1],
                time=r[2] or "",
                team_a=r[3],
                team_b=r[4],
                score_a=r[5],
                score_b=r[6],
                location=r[7] or "",
                highlights=tuple(r[8] or ()),
                player_of_the_match=r[9] or "",
                attendance=r[10] or 0,
                weather=r[11] or "",
                recap=r[12] or "",
            )
            for r in rows
        ]

    def upsert_recap(self, recap: GameRecap) -> None:
        try:
            with self._connect() as con:
                con.execute(
                    """
                    INSERT OR REPLACE INTO recaps(
                        game_id, game_date, game_time, team_a, team_b, score_a, score_b, location,
                        highlights, player_of_the_match, attendance, weather, recap
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    [
                        recap.game_id,
                        recap.game_date,
                        recap.time,
                        recap.team_a,
                        recap.team_b,
                        recap.score_a,
                        recap.score_b,
                        recap.location,
                        list(recap.highlights),
                        recap.player_of_the_match,
                        recap.attendance,
                        recap.weather,
                        recap.recap,
                    ],
                )
        except duckdb.Error as exc:
            raise StorageUnavailable(f"Could not store recap in {self.db_path}: {exc}") from exc

    def delete_recap(self, game_id: str) -> bool:
        try:
            with self._connect() as con:
                found = con.execute("SELECT COUNT(*) FROM recaps WHERE game_id = ?", [game_id]).fetchone()[0]
                if found:
                    con.execute("DELETE FROM recaps WHERE game_id = ?", [game_id])
        except duckdb.Error as exc:
            raise StorageUnavailable(f"Could not delete recap from {self.db_path}: {exc}") from exc
        return bool(found)


def _row_date(raw: Any) -> date:
    return raw if isinstance(raw, date) else parse_game_date(str(raw))


def _text(row: dict[str, Any], key: str) -> str:
    value = row[key]
    if value is None or str(value).strip() == "":
        raise ValueError(f"{key} is empty")
    return str(value)


class SupabaseStorage:
    """League tables in a hosted Postgres reached through the Supabase REST API."""

    def __init__(self, client: SupabaseClient) -> None:
        self.client = client

    def list_results(self) -> list[GameResult]:
        rows = self.client.select("scores", order="date.desc")
        results: list[GameResult] = []
        for row in rows:
            try:
                results.append(
                    GameResult(
                        game_id=_text(row, "game_id"),
                        game_date=_row_date(row["date"]),
                        team_a=_text(row, "team1"),
                        team_b=_text(row, "team2"),
                        score_a=int(row["score1"]),
                        score_b=int(row["score2"]),
                    )
                )
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed score row %s: %s", row.get("game_id"), exc)
        logger.info("Scores fetched from Supabase: %s", len(results))
        return results

    def upsert_results(self, results: Iterable[GameResult]) -> None:
        rows = [
            {
                "game_id": r.game_id,
                "date": r.game_date.isoformat(),
                "team1": r.team_a,
                "team2": r.team_b,
                "score1": r.score_a,
                "score2": r.score_b,
            }
            for r in results
        ]
        self.client.upsert("scores", rows, on_conflict="game_id")

    def list_schedule(self) -> list[ScheduledGame]:
        rows = self.client.select("schedules", order="date.asc")
        games: list[ScheduledGame] = []
        for row in rows:
            try:
                games.append(
                    ScheduledGame(
                        game_id=str(row["game_id"]) if row.get("game_id") else None,
                        game_date=_row_date(row["date"]),
                        time=_text(row, "time"),
                        team_a=_text(row, "team1"),
                        team_b=_text(row, "team2"),
                        location=str(row.get("location") or ""),
                        is_playoff=bool(row.get("is_playoff", False)),
                    )
                )
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed schedule row %s: %s", row.get("game_id"), exc)
        logger.info("Schedules fetched from Supabase: %s", len(games))
        return games

    def save_schedule(self, games: Iterable[ScheduledGame]) -> None:
        rows: list[dict[str, Any]] = []
        for g in games:
            if not g.game_id:
                logger.warning("Skipping schedule row without game id (%s vs %s)", g.team_a, g.team_b)
                continue
            rows.append(
                {
                    "game_id": g.game_id,
                    "date": g.game_date.isoformat(),
                    "time": g.time,
                    "team1": g.team_a,
                    "team2": g.team_b,
                    "location": g.location,
                    "is_playoff": g.is_playoff,
                }
            )
        self.client.upsert("schedules", rows, on_conflict="game_id")

    def list_recaps(self) -> list[GameRecap]:
        rows = self.client.select("recaps", order="date.desc")
        recaps: list[GameRecap] = []
        for row in rows:
            try:
                recaps.append(
                    GameRecap(
                        game_id=_text(row, "game_id"),
                        game_date=_row_date(row["date"]),
                        time=str(row.get("time") or ""),
                        team_a=_text(row, "team1"),
                        team_b=_text(row, "team2"),
                        score_a=int(row.get("score1") or 0),
                        score_b=int(row.get("score2") or 0),
                        location=str(row.get("location") or ""),
                        highlights=tuple(row.get("highlights") or ()),
                        player_of_the_match=str(row.get("player_of_the_match") or ""),
                        attendance=int(row.get("attendance") or 0),
                        weather=str(row.get("weather") or ""),
                        recap=str(row.get("recap") or ""),
                    )
                )
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed recap row %s: %s", row.get("game_id"), exc)
        return recaps

    def upsert_recap(self, recap: GameRecap) -> None:
        self.client.upsert(
            "recaps",
            [
                {
                    "game_id": recap.game_id,
                    "date": recap.game_date.isoformat(),
                    "time": recap.time,
                    "team1": recap.team_a,
                    "team2": recap.team_b,
                    "score1": recap.score_a,
                    "score2": recap.score_b,
                    "location": recap.location,
                    "highlights": list(recap.highlights),
                    "player_of_the_match": recap.player_of_the_match,
                    "attendance": recap.attendance,
                    "weather": recap.weather,
                    "recap": recap.recap,
                }
            ],
            on_conflict="game_id",
        )

    def delete_recap(self, game_id: str) -> bool:
        return self.client.delete("recaps", game_id=game_id) > 0


def open_storage(settings: Settings) -> LeagueStorage:
    backend = settings.storage_backend
    if backend == "csv":
        return CsvStorage(data_dir=settings.data_dir)
    if backend == "duckdb":
        return DuckDBStorage(db_path=settings.db_path)
    if backend == "supabase":
        client = SupabaseClient(
            base_url=settings.supabase_url,
            api_key=settings.supabase_key,
            timeout=settings.request_timeout_seconds,
            max_retries=settings.max_retries,
        )
        return SupabaseStorage(client=client)
    raise ValueError(f"Unsupported storage backend: {backend}")
