from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date


@dataclass(frozen=True)
class GameResult:
    game_id: str
    game_date: date
    team_a: str
    team_b: str
    score_a: int
    score_b: int

    @property
    def is_tie(self) -> bool:
        return self.score_a == self.score_b

    def swapped(self) -> "GameResult":
        return replace(
            self,
            team_a=self.team_b,
            team_b=self.team_a,
            score_a=self.score_b,
            score_b=self.score_a,
        )


@dataclass(frozen=True)
class TeamStanding:
    team: str
    wins: int
    losses: int
    points_for: int
    points_against: int

    @property
    def games_played(self) -> int:
        # Tied games are not counted.
        return self.wins + self.losses

    @property
    def point_differential(self) -> int:
        return self.points_for - self.points_against

    @property
    def avg_point_differential(self) -> float:
        played = self.games_played
        return (self.point_differential / played) if played else 0.0


@dataclass(frozen=True)
class ScheduledGame:
    game_id: str | None
    game_date: date
    time: str
    team_a: str
    team_b: str
    location: str
    is_playoff: bool = False

    def involves(self, team: str) -> bool:
        return team in (self.team_a, self.team_b)


@dataclass(frozen=True)
class GameRecap:
    game_id: str
    game_date: date
    time: str
    team_a: str
    team_b: str
    score_a: int
    score_b: int
    location: str = ""
    highlights: tuple[str, ...] = ()
    player_of_the_match: str = ""
    attendance: int = 0
    weather: str = ""
    recap: str = ""


@dataclass(frozen=True)
class UploadResult:
    success: bool
    message: str
    records_processed: int = 0
    errors: tuple[str, ...] = ()
