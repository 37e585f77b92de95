from datetime import date

from rec_league.models import GameRecap, GameResult, ScheduledGame
from rec_league.schedule import filter_games, filter_recaps, game_status, list_teams, recap_for_game, score_for_game


def _game(game_id: str | None, day: int, team_a: str, team_b: str, is_playoff: bool = False) -> ScheduledGame:
    return ScheduledGame(
        game_id=game_id,
        game_date=date(2025, 11, day),
        time="18:10",
        team_a=team_a,
        team_b=team_b,
        location="Manoa Basketball Gym",
        is_playoff=is_playoff,
    )


def _games() -> list[ScheduledGame]:
    return [
        _game("19", 8, "SHARKS", "BIG TIME"),
        _game("11", 1, "LOCKDOWN", "MANA HAWAII"),
        _game(None, 11, "1ST SEED", "4TH SEED", is_playoff=True),
        _game(None, 22, "WINNER GM 21", "LOSER GM 19", is_playoff=True),
    ]


def test_game_status() -> None:
    today = date(2025, 11, 8)
    games = _games()
    assert game_status(games[0], today) == "today"
    assert game_status(games[1], today) == "completed"
    assert game_status(games[2], today) == "playoff"
    assert game_status(_game("30", 15, "SHARKS", "JAMMERS"), today) == "scheduled"


def test_list_teams_skips_placeholders() -> None:
    assert list_teams(_games()) == ["BIG TIME", "LOCKDOWN", "MANA HAWAII", "SHARKS"]


def test_filter_games_sorts_and_filters() -> None:
    assert [g.game_id for g in filter_games(_games())] == ["11", "19", None, None]
    assert [g.game_id for g in filter_games(_games(), "SHARKS")] == ["19"]


def test_score_for_game_uses_game_id_and_schedule_orientation() -> None:
    game = _games()[0]
    results = [GameResult("19", date(2025, 11, 8), "BIG TIME", "SHARKS", 50, 47)]

    score = score_for_game(game, results)

    assert score is not None
    assert (score.team_a, score.score_a, score.team_b, score.score_b) == ("SHARKS", 47, "BIG TIME", 50)


def test_score_for_game_falls_back_to_date_and_teams() -> None:
    game = _game(None, 1, "LOCKDOWN", "MANA HAWAII")
    results = [GameResult("11", date(2025, 11, 1), "LOCKDOWN", "MANA HAWAII", 39, 36)]

    assert score_for_game(game, results) == results[0]
    assert score_for_game(_game(None, 2, "LOCKDOWN", "MANA HAWAII"), results) is None


def test_recap_for_game() -> None:
    recap = GameRecap("19", date(2025, 11, 8), "18:10", "SHARKS", "BIG TIME", 47, 50)
    assert recap_for_game(_games()[0], [recap]) == recap
    assert recap_for_game(_games()[2], [recap]) is None


def _recaps() -> list[GameRecap]:
    return [
        GameRecap("19", date(2025, 11, 8), "18:10", "SHARKS", "BIG TIME", 47, 50, player_of_the_match="Keoni Kealoha"),
        GameRecap("11", date(2025, 11, 1), "18:10", "LOCKDOWN", "MANA HAWAII", 39, 36, player_of_the_match="Sam Lee"),
        GameRecap("20", date(2025, 11, 8), "19:00", "MANAFEST", "LOCKDOWN", 41, 44),
    ]


def test_filter_recaps_by_team() -> None:
    recaps = _recaps()
    assert list_teams(recaps) == ["BIG TIME", "LOCKDOWN", "MANA HAWAII", "MANAFEST", "SHARKS"]
    assert filter_recaps(recaps) == recaps
    assert [r.game_id for r in filter_recaps(recaps, team="LOCKDOWN")] == ["11", "20"]
    # Team match is a substring match, so MANA also picks up MANAFEST.
    assert [r.game_id for r in filter_recaps(recaps, team="MANA")] == ["11", "20"]


def test_filter_recaps_search_is_case_insensitive() -> None:
    recaps = _recaps()
    assert [r.game_id for r in filter_recaps(recaps, query="keoni")] == ["19"]
    assert [r.game_id for r in filter_recaps(recaps, query="  hawaii ")] == ["11"]
    assert [r.game_id for r in filter_recaps(recaps, team="LOCKDOWN", query="sam")] == ["11"]
    assert filter_recaps(recaps, team="SHARKS", query="sam") == []
