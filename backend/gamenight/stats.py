"""Leaderboard and personal statistics aggregation over recorded results."""

from collections.abc import Iterable
from typing import NamedTuple

from . import schemas

TOP_GAMES_LIMIT = 10


class LeaderboardRow(NamedTuple):
    user_id: int
    name: str
    points_awarded: int
    placement: int


class StatisticsRow(NamedTuple):
    game_name: str
    placement: int
    player_count: int


def win_rate(wins: int, played: int) -> int:
    """Integer win percentage rounded half-up: 1/3 -> 33, 2/3 -> 67, 1/8 -> 13."""
    if played <= 0:
        return 0
    return (wins * 200 + played) // (2 * played)


def build_leaderboard(rows: Iterable[LeaderboardRow]) -> list[schemas.LeaderboardEntry]:
    table: dict[int, dict[str, int | str]] = {}
    for row in rows:
        entry = table.setdefault(
            row.user_id,
            {"name": row.name, "total_points": 0, "games_played": 0, "placement_sum": 0},
        )
        entry["total_points"] += row.points_awarded
        entry["games_played"] += 1
        entry["placement_sum"] += row.placement

    entries = [
        schemas.LeaderboardEntry(
            user_id=user_id,
            name=str(entry["name"]),
            total_league_points=int(entry["total_points"]),
            games_played=int(entry["games_played"]),
            average_placement=int(entry["placement_sum"]) / int(entry["games_played"]),
        )
        for user_id, entry in table.items()
    ]

    entries.sort(key=lambda item: (-item.total_league_points, item.average_placement, item.user_id))
    return entries


def build_statistics(user: schemas.UserRead, rows: Iterable[StatisticsRow]) -> schemas.UserStatistics:
    total_games = 0
    wins = second = third = last = 0
    per_game: dict[str, dict[str, int]] = {}

    for row in rows:
        total_games += 1
        if row.placement == 1:
            wins += 1
        elif row.placement == 2:
            second += 1
        elif row.placement == 3:
            third += 1

        # A solo session is never a last-place finish. With dense placements
        # the bottom player only counts as last when nobody above them tied,
        # e.g. scores 9, 9, 1 give placements 1, 1, 2 in a 3-player session.
        if row.player_count > 1 and row.placement == row.player_count:
            last += 1

        game = per_game.setdefault(row.game_name, {"played": 0, "wins": 0})
        game["played"] += 1
        if row.placement == 1:
            game["wins"] += 1

    pie_data = [
        schemas.PieSlice(name="1st", value=wins),
        schemas.PieSlice(name="2nd", value=second),
        schemas.PieSlice(name="3rd", value=third),
        schemas.PieSlice(name="4th+", value=max(0, total_games - wins - second - third)),
    ]

    games_data = [
        schemas.GameStat(
            name=name,
            played=counts["played"],
            wins=counts["wins"],
            win_rate=win_rate(counts["wins"], counts["played"]),
        )
        for name, counts in per_game.items()
    ]
    games_data.sort(key=lambda item: (-item.played, item.name))

    return schemas.UserStatistics(
        user=user,
        total_games=total_games,
        summary=schemas.PlacementSummary(wins=wins, second=second, third=third, last=last),
        pie_data=[slice_ for slice_ in pie_data if slice_.value > 0],
        games_data=games_data[:TOP_GAMES_LIMIT],
    )
