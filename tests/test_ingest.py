from datetime import date

import pytest

from rec_league.errors import IngestError
from rec_league.ingest import (
    normalize_time,
    parse_game_date,
    parse_recaps_csv,
    parse_schedule_csv,
    parse_scores_csv,
)


def test_scores_csv_maps_header_variants() -> None:
    content = "\n".join(
        [
            "GameID,date,Team1,team_2,Score 1,score2",
            "4,10/11/25,BIG TIME,MANA HAWAII,42,39",
            "5, 10/11/25 , MANAFEST , LOCKDOWN ,35,35",
        ]
    )

    results, errors = parse_scores_csv(content)

    assert errors == []
    assert [r.game_id for r in results] == ["4", "5"]
    first = results[0]
    assert first.game_date == date(2025, 10, 11)
    assert (first.team_a, first.team_b, first.score_a, first.score_b) == ("BIG TIME", "MANA HAWAII", 42, 39)
    assert results[1].team_a == "MANAFEST"


def test_scores_csv_rejects_bad_rows_without_inventing_scores() -> None:
    content = "\n".join(
        [
            "gameID,Date,Team 1,Team 2,Score 1,Score 2",
            "1,10/11/25,SHARKS,JAMMERS,abc,30",
            ",10/11/25,SHARKS,JAMMERS,31,30",
            "3,10/11/25,SHARKS,SHARKS,31,30",
            "4,10/11/25,SHARKS,JAMMERS,-1,30",
            "5,10/11/25,SHARKS,JAMMERS,31,30",
        ]
    )

    results, errors = parse_scores_csv(content)

    assert [r.game_id for r in results] == ["5"]
    assert len(errors) == 4
    assert errors[0].startswith("Line 2:")
    assert "missing game_id" in errors[1]


def test_blank_and_no_game_rows_are_dropped() -> None:
    content = "\n".join(
        [
            "gameID,Date,Team 1,Team 2,Time",
            "",
            ",,No Game,No Game,",
            "9,10/18/25,MANAFEST,SHARKS,6:50",
        ]
    )

    games, errors = parse_schedule_csv(content)

    assert errors == []
    assert len(games) == 1
    assert games[0].time == "18:50"


def test_schedule_csv_flags_playoff_placeholders() -> None:
    content = "\n".join(
        [
            "gameID,Date,Team 1,Team 2,Time",
            "21,11/8/25,LOCKDOWN,RAINJAHZ,7:30",
            ",11/11/25,1ST SEED,4TH SEED,6:10",
            ",11/22/25,WINNER GM 21,5TH SEED,6:50",
        ]
    )

    games, _ = parse_schedule_csv(content, default_location="Manoa Basketball Gym")

    assert [g.is_playoff for g in games] == [False, True, True]
    assert games[1].game_id is None
    assert games[0].location == "Manoa Basketball Gym"


def test_schedule_row_missing_time_is_skipped() -> None:
    games, errors = parse_schedule_csv("gameID,Date,Team 1,Team 2,Time\n4,10/11/25,BIG TIME,MANA HAWAII,")
    assert games == []
    assert errors == ["Line 2: missing time"]


def test_empty_content_raises() -> None:
    with pytest.raises(IngestError):
        parse_scores_csv("   ")


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("10/11/25", date(2025, 10, 11)),
        ("1/5/2026", date(2026, 1, 5)),
        ("2025-11-01", date(2025, 11, 1)),
    ],
)
def test_parse_game_date_formats(raw: str, expected: date) -> None:
    assert parse_game_date(raw) == expected


def test_parse_game_date_rejects_garbage() -> None:
    with pytest.raises(IngestError):
        parse_game_date("next tuesday")


@pytest.mark.parametrize(
    "raw, expected",
    [("5:30", "17:30"), ("11:05", "23:05"), ("12:00", "12:00"), ("19:10", "19:10"), ("4:15", "04:15")],
)
def test_normalize_time(raw: str, expected: str) -> None:
    assert normalize_time(raw) == expected


def test_normalize_time_is_stable_for_stored_values() -> None:
    for raw in ("5:30", "6:10", "11:59"):
        once = normalize_time(raw)
        assert normalize_time(once) == once


def test_recaps_csv_splits_highlights() -> None:
    content = "\n".join(
        [
            "id,gameId,date,time,team1,team2,score1,score2,location,highlights,playerOfTheMatch,attendance,weather,recap",
            '1,12,11/1/25,18:10,SHARKS,MANA HAWAII,44,40,Gym,Buzzer beater|Late run,Kai,55,Clear,"Close one, all night"',
        ]
    )

    recaps, errors = parse_recaps_csv(content)

    assert errors == []
    recap = recaps[0]
    assert recap.game_id == "12"
    assert recap.highlights == ("Buzzer beater", "Late run")
    assert recap.player_of_the_match == "Kai"
    assert recap.attendance == 55
    assert recap.recap == "Close one, all night"
