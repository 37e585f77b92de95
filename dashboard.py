from __future__ import annotations

import hmac

import pandas as pd
import streamlit as st

from rec_league.config import Settings, configure_logging, load_settings, today
from rec_league.errors import StorageUnavailable
from rec_league.models import GameRecap, UploadResult
from rec_league.pipeline import (
    delete_recap,
    import_schedule_csv,
    import_scores_csv,
    load_standings,
    recap_draft,
    save_recap,
    standings_frame,
)
from rec_league.schedule import (
    filter_games,
    filter_recaps,
    game_status,
    list_teams,
    recap_for_game,
    score_for_game,
)
from rec_league.standings import summarize_scores
from rec_league.storage import LeagueStorage, open_storage

ALL_TEAMS = "All Teams"


@st.cache_resource
def get_settings() -> Settings:
    configure_logging()
    return load_settings()


@st.cache_resource
def get_storage() -> LeagueStorage:
    return open_storage(get_settings())


def _show_result(result: UploadResult) -> None:
    if result.success:
        st.success(f"{result.message} ({result.records_processed} records)")
    else:
        st.error(result.message)
    for message in result.errors:
        st.caption(message)


def schedule_page(storage: LeagueStorage) -> None:
    st.subheader("Schedule")
    games = storage.list_schedule()
    if not games:
        st.info("No schedule has been uploaded yet.")
        return

    team = st.selectbox("Team", [ALL_TEAMS, *list_teams(games)])
    results = storage.list_results()
    rows = []
    for game in filter_games(games, None if team == ALL_TEAMS else team):
        score = score_for_game(game, results)
        rows.append(
            {
                "Date": game.game_date.isoformat(),
                "Time": game.time,
                "Matchup": f"{game.team_a} vs {game.team_b}",
                "Score": f"{score.score_a}-{score.score_b}" if score else "",
                "Location": game.location,
                "Status": game_status(game, today()),
            }
        )
    st.dataframe(pd.DataFrame(rows), hide_index=True)


def standings_page(storage: LeagueStorage) -> None:
    st.subheader("Standings")
    standings = load_standings(storage)
    if not standings:
        st.info("No standings yet. Scores will appear here once games are played.")
        return
    st.dataframe(standings_frame(standings), hide_index=True)

    stats = summarize_scores(storage.list_results())
    left, middle, right = st.columns(3)
    left.metric("Games played", stats["total_games"])
    middle.metric("Total points", stats["total_points"])
    right.metric("Points per game", stats["average_points_per_game"])


def recaps_page(storage: LeagueStorage) -> None:
    st.subheader("Game Recaps")
    recaps = storage.list_recaps()
    if not recaps:
        st.info("No recaps have been posted yet.")
        return

    col1, col2 = st.columns(2)
    with col1:
        team = st.selectbox("Team", [ALL_TEAMS, *list_teams(recaps)], key="recap_team")
    with col2:
        query = st.text_input("Search", placeholder="Team or player")
    shown = filter_recaps(recaps, None if team == ALL_TEAMS else team, query)
    if not shown:
        st.info("No recaps match these filters.")
        return
    for recap in shown:
        with st.expander(f"{recap.game_date.isoformat()}: {recap.team_a} {recap.score_a} - {recap.score_b} {recap.team_b}"):
            if recap.recap:
                st.write(recap.recap)
            for highlight in recap.highlights:
                st.markdown(f"- {highlight}")
            if recap.player_of_the_match:
                st.caption(f"Player of the match: {recap.player_of_the_match}")


def _recap_editor(storage: LeagueStorage) -> None:
    games = [g for g in storage.list_schedule() if g.game_id]
    results = storage.list_results()
    recaps = storage.list_recaps()
    played = [(g, score_for_game(g, results)) for g in games]
    played = [(g, s) for g, s in played if s is not None]
    if not played:
        st.info("Upload scores before writing recaps.")
        return

    labels = {f"{g.game_id}: {g.team_a} vs {g.team_b} ({g.game_date.isoformat()})": (g, s) for g, s in played}
    game, score = labels[st.selectbox("Game", list(labels))]
    existing = recap_for_game(game, recaps) or recap_draft(game, score)

    with st.form("recap_form"):
        text = st.text_area("Recap", value=existing.recap)
        highlights = st.text_area("Highlights (one per line)", value="\n".join(existing.highlights))
        player = st.text_input("Player of the match", value=existing.player_of_the_match)
        attendance = st.number_input("Attendance", min_value=0, value=existing.attendance, step=1)
        weather = st.text_input("Weather", value=existing.weather)
        saved = st.form_submit_button("Save recap")

    if saved:
        recap = GameRecap(
            game_id=existing.game_id,
            game_date=existing.game_date,
            time=existing.time,
            team_a=existing.team_a,
            team_b=existing.team_b,
            score_a=existing.score_a,
            score_b=existing.score_b,
            location=existing.location,
            highlights=tuple(line.strip() for line in highlights.splitlines() if line.strip()),
            player_of_the_match=player,
            attendance=int(attendance),
            weather=weather,
            recap=text,
        )
        _show_result(save_recap(storage, recap))
    if st.button("Delete recap"):
        _show_result(delete_recap(storage, existing.game_id))


def admin_page(storage: LeagueStorage, settings: Settings) -> None:
    st.subheader("Admin")
    if not st.session_state.get("admin_authenticated"):
        if not settings.admin_password:
            st.warning("LEAGUE_ADMIN_PASSWORD is not set; the admin page is disabled.")
            return
        password = st.text_input("Password", type="password")
        if st.button("Log in"):
            if hmac.compare_digest(password, settings.admin_password):
                st.session_state["admin_authenticated"] = True
                st.rerun()
            st.error("Incorrect password")
        return

    schedule_tab, scores_tab, recaps_tab = st.tabs(["Upload Schedule", "Upload Scores", "Recaps"])
    with schedule_tab:
        upload = st.file_uploader("Schedule CSV", type="csv", key="schedule_csv")
        if upload is not None and st.button("Import schedule"):
            content = upload.getvalue().decode("utf-8")
            _show_result(import_schedule_csv(storage, content, default_location=settings.default_location))
    with scores_tab:
        upload = st.file_uploader("Scores CSV", type="csv", key="scores_csv")
        if upload is not None and st.button("Import scores"):
            content = upload.getvalue().decode("utf-8")
            _show_result(
                import_scores_csv(storage, content, require_scheduled=settings.require_scheduled_scores)
            )
    with recaps_tab:
        _recap_editor(storage)

    if st.button("Log out"):
        st.session_state["admin_authenticated"] = False
        st.rerun()


def main() -> None:
    settings = get_settings()
    st.set_page_config(page_title=settings.league_name, layout="wide")
    st.title(settings.league_name)

    page = st.sidebar.radio("Page", ["Schedule", "Standings", "Recaps", "Admin"])
    try:
        storage = get_storage()
        if page == "Schedule":
            schedule_page(storage)
        elif page == "Standings":
            standings_page(storage)
        elif page == "Recaps":
            recaps_page(storage)
        else:
            admin_page(storage, settings)
    except StorageUnavailable as exc:
        st.error(f"League data is unavailable right now: {exc}")


if __name__ == "__main__":
    main()
