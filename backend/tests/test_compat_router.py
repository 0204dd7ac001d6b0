"""Integration tests for the /v1/compat router."""
from unittest.mock import AsyncMock, MagicMock

from numero.config import settings

PAIR_PAYLOAD = {
    "name_1": "John Smith",
    "birth_date_1": "1994-11-29",
    "name_2": "Mary Jones",
    "birth_date_2": "1990-07-14",
}


def test_calculate_compat(client):
    resp = client.post("/v1/compat/calculate", json=PAIR_PAYLOAD)
    assert resp.status_code == 200
    data = resp.json()
    assert 0 <= data["overall_score"] <= 100
    assert data["level"] in ("excellent", "good", "moderate", "challenging")
    assert [a["name"] for a in data["aspects"]] == ["Life Path", "Expression", "Soul Urge", "Personality", "Birthday"]
    assert data["person1"]["life_path"] == 9
    assert data["person2"]["life_path"] == 4
    assert data["relationship_number"] == 4


def test_calculate_compat_same_person(client):
    payload = {**PAIR_PAYLOAD, "name_2": "John Smith", "birth_date_2": "1994-11-29"}
    data = client.post("/v1/compat/calculate", json=payload).json()
    assert data["overall_score"] == 78
    assert data["level"] == "good"
    assert data["shared_numbers"] == [6, 8, 9, 11]
    assert "Shared inner desires and motivations" in data["complementary_aspects"]


def test_calculate_compat_is_symmetric(client):
    swapped = {
        "name_1": PAIR_PAYLOAD["name_2"],
        "birth_date_1": PAIR_PAYLOAD["birth_date_2"],
        "name_2": PAIR_PAYLOAD["name_1"],
        "birth_date_2": PAIR_PAYLOAD["birth_date_1"],
    }
    forward = client.post("/v1/compat/calculate", json=PAIR_PAYLOAD).json()
    backward = client.post("/v1/compat/calculate", json=swapped).json()
    assert forward["overall_score"] == backward["overall_score"]


def test_calculate_compat_masters_hidden(client, monkeypatch):
    monkeypatch.setattr(settings, "show_master_numbers", False)
    data = client.post("/v1/compat/calculate", json=PAIR_PAYLOAD).json()
    assert data["person1"]["personality"] == 11
    assert data["person1"]["personality_master"] is False


def test_calculate_compat_validation(client):
    assert client.post("/v1/compat/calculate", json={**PAIR_PAYLOAD, "name_1": "42"}).status_code == 422
    assert client.post("/v1/compat/calculate", json={**PAIR_PAYLOAD, "birth_date_2": "1700-01-01"}).status_code == 422


def test_profiles_compat_stored_and_replaced(client, make_profile):
    john = make_profile()
    mary = make_profile(first_name="Mary", last_name="Jones", birth_date="1990-07-14")

    payload = {"profile1_id": john["id"], "profile2_id": mary["id"]}
    first = client.post("/v1/compat/profiles", json=payload)
    assert first.status_code == 200
    record = first.json()
    assert record["profile1_id"] == john["id"]
    assert record["system"] == "pythagorean"
    assert record["relationship_number"] == 4

    # same pair in the other order replaces the stored record
    client.post("/v1/compat/profiles", json={"profile1_id": mary["id"], "profile2_id": john["id"]})
    listing = client.get(f"/v1/compat/profiles/{john['id']}").json()
    assert len(listing["items"]) == 1
    assert listing["average_score"] == record["overall_score"]


def test_profiles_compat_same_profile_conflict(client, make_profile):
    john = make_profile()
    resp = client.post("/v1/compat/profiles", json={"profile1_id": john["id"], "profile2_id": john["id"]})
    assert resp.status_code == 409


def test_profiles_compat_unknown_profile(client, make_profile):
    john = make_profile()
    resp = client.post("/v1/compat/profiles", json={"profile1_id": john["id"], "profile2_id": 999})
    assert resp.status_code == 404
    assert client.get("/v1/compat/profiles/999").status_code == 404


def test_compat_list_without_records(client, make_profile):
    john = make_profile()
    data = client.get(f"/v1/compat/profiles/{john['id']}").json()
    assert data == {"profile_id": john["id"], "average_score": None, "items": []}


def test_top_compat_sorted(client, make_profile):
    john = make_profile()
    twin = make_profile(first_name="John", last_name="Smith", birth_date="1994-11-29")
    mary = make_profile(first_name="Mary", last_name="Jones", birth_date="1990-07-14")
    client.post("/v1/compat/profiles", json={"profile1_id": john["id"], "profile2_id": mary["id"]})
    client.post("/v1/compat/profiles", json={"profile1_id": john["id"], "profile2_id": twin["id"]})

    resp = client.get("/v1/compat/top?limit=5")
    assert resp.status_code == 200
    scores = [item["overall_score"] for item in resp.json()]
    assert len(scores) == 2
    assert scores == sorted(scores, reverse=True)
    assert client.get("/v1/compat/top?limit=1").json()[0]["overall_score"] == scores[0]


def test_deleting_profile_drops_compat(client, make_profile):
    john = make_profile()
    mary = make_profile(first_name="Mary", last_name="Jones", birth_date="1990-07-14")
    client.post("/v1/compat/profiles", json={"profile1_id": john["id"], "profile2_id": mary["id"]})
    client.delete(f"/v1/profiles/{mary['id']}")
    assert client.get(f"/v1/compat/profiles/{john['id']}").json()["items"] == []


def test_relationship_number(client):
    resp = client.post(
        "/v1/compat/relationship-number",
        json={"birth_date_1": "1994-11-29", "birth_date_2": "1990-07-14"},
    )
    assert resp.status_code == 200
    assert resp.json() == {"relationship_number": 4}


def test_auspicious_dates_inline_without_arq(client):
    payload = {"birth_date_1": "1994-11-29", "birth_date_2": "1990-07-14", "year": 2026}
    resp = client.post("/v1/compat/auspicious-dates", json=payload)
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "done"
    assert data["task_id"] is None
    dates = data["dates"]
    assert 0 < len(dates) <= 30
    assert all(item["score"] >= 80 for item in dates)
    scores = [item["score"] for item in dates]
    assert scores == sorted(scores, reverse=True)
    assert all(item["date"].startswith("2026-") for item in dates)


def test_auspicious_dates_year_out_of_range(client):
    payload = {"birth_date_1": "1994-11-29", "birth_date_2": "1990-07-14", "year": 2101}
    assert client.post("/v1/compat/auspicious-dates", json=payload).status_code == 422


def test_auspicious_dates_with_arq_returns_pending(client):
    mock_job = MagicMock()
    mock_job.job_id = "scan-job-123"
    mock_pool = MagicMock()
    mock_pool.enqueue_job = AsyncMock(return_value=mock_job)

    from numero.main import app
    app.state.arq_pool = mock_pool
    try:
        payload = {"birth_date_1": "1994-11-29", "birth_date_2": "1990-07-14", "year": 2026}
        resp = client.post("/v1/compat/auspicious-dates", json=payload)
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "pending"
        assert data["task_id"] == "scan-job-123"
        assert data["dates"] is None

        args, kwargs = mock_pool.enqueue_job.call_args
        assert args == ("task_auspicious_dates",)
        assert kwargs["birth_date_1"] == "1994-11-29"
        assert kwargs["year"] == 2026
        assert kwargs["limit"] == settings.auspicious_dates_limit
    finally:
        app.state.arq_pool = None
