from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from gamenight.database import get_db, make_engine
from gamenight.main import app


def record(client, ids, game="wonders", template=None, **scores):
    payload = {
        "game_id": ids[game],
        "group_id": ids["group"],
        "players": [{"user_id": ids[name], "raw_score": score} for name, score in scores.items()],
    }
    if template:
        payload["template_id"] = ids[template]
    return client.post("/sessions/", json=payload)


def test_healthcheck(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_user_group_game_template_flow(client):
    alice = client.post("/users/", json={"name": "  Alice  ", "email": "Alice@Example.com"})
    assert alice.status_code == 201
    alice_id = alice.json()["id"]
    assert alice.json()["name"] == "Alice"
    assert alice.json()["email"] == "alice@example.com"

    guest = client.post("/users/", json={"name": "Guest", "is_guest": True})
    assert guest.status_code == 201
    assert guest.json()["is_guest"] is True

    group = client.post("/groups/", json={"name": "Friday Games", "creator_id": alice_id})
    assert group.status_code == 201
    group_id = group.json()["id"]

    added = client.post(f"/groups/{group_id}/members", json={"user_id": guest.json()["id"]})
    assert added.status_code == 201
    assert added.json()["role"] == "MEMBER"

    members = client.get(f"/groups/{group_id}/members").json()
    assert [(member["name"], member["role"]) for member in members] == [("Alice", "ADMIN"), ("Guest", "MEMBER")]

    game = client.post("/games/", json={"name": "Cascadia"})
    assert game.status_code == 201
    game_id = game.json()["id"]

    template = client.post(
        "/templates/",
        json={
            "game_id": game_id,
            "name": "Base",
            "fields": [
                {"key": "bear", "label": "Bears"},
                {"key": "salmon", "label": "Salmon"},
            ],
        },
    )
    assert template.status_code == 201
    assert template.json()["fields"][0] == {"key": "bear", "label": "Bears", "type": "number", "multiplier": 1}

    detail = client.get(f"/games/{game_id}").json()
    assert [item["name"] for item in detail["templates"]] == ["Base"]

    games = client.get("/games/").json()
    assert games == [{"id": game_id, "name": "Cascadia", "session_count": 0}]


def test_duplicate_names_conflict(client):
    client.post("/games/", json={"name": "Azul"})
    client.post("/users/", json={"name": "Alice", "email": "alice@example.com"})

    assert client.post("/games/", json={"name": "azul"}).status_code == 409
    assert client.post("/users/", json={"name": "Other", "email": "ALICE@example.com"}).status_code == 409


def test_group_creator_must_exist(client):
    response = client.post("/groups/", json={"name": "Ghosts", "creator_id": 77})

    assert response.status_code == 404


def test_adding_existing_member_conflicts(client, ids):
    response = client.post(f"/groups/{ids['group']}/members", json={"user_id": ids["bob"]})

    assert response.status_code == 409


def test_template_validation(client, ids):
    duplicate = client.post(
        "/templates/",
        json={
            "game_id": ids["wonders"],
            "name": "Broken",
            "fields": [{"key": "a", "label": "A"}, {"key": "a", "label": "Again"}],
        },
    )
    assert duplicate.status_code == 400
    assert "Duplicate field key" in duplicate.json()["detail"]

    empty = client.post("/templates/", json={"game_id": ids["wonders"], "name": "Empty", "fields": []})
    assert empty.status_code == 400

    missing_game = client.post(
        "/templates/",
        json={"game_id": 9999, "name": "Orphan", "fields": [{"key": "a", "label": "A"}]},
    )
    assert missing_game.status_code == 404


def test_template_update_and_delete(client, ids):
    template_id = ids["template"]

    updated = client.put(
        f"/templates/{template_id}",
        json={"name": "Cities", "fields": [{"key": "civilian", "label": "Civilian", "multiplier": 2}]},
    )
    assert updated.status_code == 200
    assert updated.json()["name"] == "Cities"
    assert updated.json()["fields"][0]["multiplier"] == 2

    assert client.get(f"/games/{ids['wonders']}/templates").json()[0]["name"] == "Cities"

    assert client.delete(f"/templates/{template_id}").status_code == 204
    assert client.get(f"/templates/{template_id}").status_code == 404


def test_record_session_returns_ranked_players(client, ids):
    response = record(client, ids, alice=12, bob=30, carol=12)

    assert response.status_code == 201
    payload = response.json()
    assert payload["game_name"] == "7 Wonders"
    assert [
        (player["user_name"], player["placement"], player["points_awarded"]) for player in payload["players"]
    ] == [("Bob", 1, 3), ("Alice", 2, 2), ("Carol", 2, 2)]

    fetched = client.get(f"/sessions/{payload['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["players"] == payload["players"]


def test_record_session_with_score_details(client, ids):
    response = client.post(
        "/sessions/",
        json={
            "game_id": ids["wonders"],
            "group_id": ids["group"],
            "template_id": ids["template"],
            "players": [
                {"user_id": ids["alice"], "score_details": {"military": 3, "science": 5}},
                {"user_id": ids["bob"], "score_details": {"wonders": 12}},
            ],
        },
    )

    assert response.status_code == 201
    players = response.json()["players"]
    assert players[0]["user_id"] == ids["alice"]
    assert players[0]["raw_score"] == 13
    assert players[0]["score_details"] == {"military": 3, "science": 5}
    assert players[1]["raw_score"] == 12


def test_record_session_errors(client, ids):
    empty = client.post("/sessions/", json={"game_id": ids["wonders"], "group_id": ids["group"], "players": []})
    assert empty.status_code == 400

    duplicate = client.post(
        "/sessions/",
        json={
            "game_id": ids["wonders"],
            "group_id": ids["group"],
            "players": [
                {"user_id": ids["alice"], "raw_score": 1},
                {"user_id": ids["alice"], "raw_score": 2},
            ],
        },
    )
    assert duplicate.status_code == 400

    unknown_field = client.post(
        "/sessions/",
        json={
            "game_id": ids["wonders"],
            "group_id": ids["group"],
            "template_id": ids["template"],
            "players": [{"user_id": ids["alice"], "score_details": {"coins": 4}}],
        },
    )
    assert unknown_field.status_code == 400
    assert "coins" in unknown_field.json()["detail"]

    no_score = client.post(
        "/sessions/",
        json={"game_id": ids["wonders"], "group_id": ids["group"], "players": [{"user_id": ids["alice"]}]},
    )
    assert no_score.status_code == 422

    unknown_game = client.post(
        "/sessions/",
        json={"game_id": 9999, "group_id": ids["group"], "players": [{"user_id": ids["alice"], "raw_score": 1}]},
    )
    assert unknown_game.status_code == 404

    assert client.get("/sessions/").json() == []


def test_list_sessions_filters_by_group(client, ids):
    record(client, ids, alice=3, bob=1)
    client.post(
        "/sessions/",
        json={
            "game_id": ids["arnak"],
            "group_id": ids["other_group"],
            "players": [{"user_id": ids["bob"], "raw_score": 40}],
        },
    )

    assert len(client.get("/sessions/").json()) == 2
    scoped = client.get(f"/sessions/?group_id={ids['group']}").json()
    assert len(scoped) == 1
    assert scoped[0]["group_id"] == ids["group"]


def test_leaderboard_endpoint(client, ids):
    record(client, ids, alice=30, bob=20, carol=10)
    record(client, ids, game="arnak", bob=30, carol=20, alice=10)

    response = client.get(f"/groups/{ids['group']}/leaderboard")

    assert response.status_code == 200
    rows = response.json()
    assert [row["name"] for row in rows] == ["Bob", "Alice", "Carol"]
    assert rows[1] == {
        "user_id": ids["alice"],
        "name": "Alice",
        "total_league_points": 4,
        "games_played": 2,
        "average_placement": 2.0,
    }

    assert client.get("/groups/9999/leaderboard").status_code == 404


def test_statistics_endpoint(client, ids):
    record(client, ids, alice=9, bob=3)
    record(client, ids, alice=8, carol=1)
    record(client, ids, alice=2, bob=7)

    response = client.get(f"/statistics/{ids['alice']}")

    assert response.status_code == 200
    payload = response.json()
    assert payload["user"]["name"] == "Alice"
    assert payload["total_games"] == 3
    assert payload["summary"] == {"wins": 2, "second": 1, "third": 0, "last": 1}
    assert payload["pie_data"] == [{"name": "1st", "value": 2}, {"name": "2nd", "value": 1}]
    assert payload["games_data"] == [{"name": "7 Wonders", "played": 3, "wins": 2, "win_rate": 67}]


def test_statistics_for_unknown_user(client, ids):
    response = client.get("/statistics/9999")

    assert response.status_code == 404
    assert response.json()["detail"] == "User not found."


def test_deletes_are_blocked_by_recorded_sessions(client, ids):
    record(client, ids, alice=5, bob=2)

    assert client.delete(f"/users/{ids['alice']}").status_code == 409
    assert client.delete(f"/games/{ids['wonders']}").status_code == 409

    assert client.delete(f"/users/{ids['guest']}").status_code == 204
    assert client.delete(f"/games/{ids['arnak']}").status_code == 204
    assert client.get(f"/games/{ids['arnak']}").status_code == 404
    assert client.get("/games/").json() == [{"id": ids["wonders"], "name": "7 Wonders", "session_count": 1}]


def test_rename_game(client, ids):
    renamed = client.patch(f"/games/{ids['arnak']}", json={"name": "Arnak"})
    assert renamed.status_code == 200
    assert renamed.json()["name"] == "Arnak"

    clash = client.patch(f"/games/{ids['arnak']}", json={"name": "7 wonders"})
    assert clash.status_code == 409


def test_unreachable_database_returns_503(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'missing' / 'league.db'}")
    broken_factory = sessionmaker(bind=engine, autoflush=False, autocommit=False)

    def override_get_db():
        db = broken_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        with TestClient(app) as test_client:
            response = test_client.get("/groups/1/leaderboard")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 503
    assert response.json() == {"detail": "Database is unavailable."}


def test_blank_user_name_is_a_bad_request(client):
    response = client.post("/users/", json={"name": "   "})

    assert response.status_code == 400
    assert response.json()["detail"] == "Name is required."


def test_zero_multiplier_is_stored_and_scored_as_zero(client, ids):
    template = client.post(
        "/templates/",
        json={
            "game_id": ids["arnak"],
            "name": "Idols only",
            "fields": [{"key": "a", "label": "A", "multiplier": 0}, {"key": "b", "label": "B"}],
        },
    )
    assert template.status_code == 201
    assert template.json()["fields"][0]["multiplier"] == 0

    response = client.post(
        "/sessions/",
        json={
            "game_id": ids["arnak"],
            "group_id": ids["group"],
            "template_id": template.json()["id"],
            "players": [{"user_id": ids["alice"], "score_details": {"a": 10, "b": 1}}],
        },
    )

    assert response.status_code == 201
    assert response.json()["players"][0]["raw_score"] == 1


def test_recorded_scores_survive_template_edit_and_delete(client, ids):
    recorded = client.post(
        "/sessions/",
        json={
            "game_id": ids["wonders"],
            "group_id": ids["group"],
            "template_id": ids["template"],
            "players": [
                {"user_id": ids["alice"], "score_details": {"military": 3, "science": 2}},
                {"user_id": ids["bob"], "score_details": {"wonders": 5}},
            ],
        },
    )
    assert recorded.status_code == 201
    session_id = recorded.json()["id"]
    before = {player["user_id"]: player for player in recorded.json()["players"]}

    edited = client.put(
        f"/templates/{ids['template']}",
        json={"name": "Cities", "fields": [{"key": "civilian", "label": "Civilian", "multiplier": 5}]},
    )
    assert edited.status_code == 200

    after_edit = client.get(f"/sessions/{session_id}").json()
    assert after_edit["template_id"] == ids["template"]
    assert {player["user_id"]: player for player in after_edit["players"]} == before

    assert client.delete(f"/templates/{ids['template']}").status_code == 204

    after_delete = client.get(f"/sessions/{session_id}").json()
    assert after_delete["template_id"] is None
    players = {player["user_id"]: player for player in after_delete["players"]}
    assert players == before
    assert players[ids["alice"]]["score_details"] == {"military": 3, "science": 2}
    assert players[ids["alice"]]["raw_score"] == 7
