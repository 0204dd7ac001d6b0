"""Integration tests for the /v1/numerology router."""
from numero.config import settings

VALID_PAYLOAD = {
    "full_name": "John Smith",
    "birth_date": "1994-11-29",
}


def test_calculate_returns_full_analysis(client):
    resp = client.post("/v1/numerology/calculate", json=VALID_PAYLOAD)
    assert resp.status_code == 200
    data = resp.json()
    assert data["system"] == "pythagorean"
    assert data["life_path"]["final_number"] == 9
    assert data["life_path"]["reduction_steps"] == [27, 9]
    assert data["expression"]["final_number"] == 8
    assert data["soul_urge"]["final_number"] == 6
    assert data["personality"]["final_number"] == 11
    assert data["personality"]["is_master_number"] is True
    assert data["birthday"]["final_number"] == 11
    assert data["karmic_lessons"] == [3, 7]
    assert data["hidden_passion"] == 8
    assert data["special_numbers"] == {"cornerstone": 1, "capstone": 5, "first_vowel": 6}
    assert [p["number"] for p in data["pinnacles"]] == [4, 7, 11, 7]
    assert [c["number"] for c in data["challenges"]] == [0, 3, 3, 3]
    assert [p["source"] for p in data["life_periods"]] == ["Month", "Day", "Year"]
    assert data["current"] is None
    assert data["profile_id"] is None


def test_calculate_letter_breakdown(client):
    data = client.post("/v1/numerology/calculate", json=VALID_PAYLOAD).json()
    letters = [item["letter"] for item in data["expression"]["breakdown"]]
    assert "".join(letters) == "JOHNSMITH"


def test_calculate_with_today_adds_current_periods(client):
    resp = client.post("/v1/numerology/calculate", json={**VALID_PAYLOAD, "today": "2026-10-17"})
    assert resp.status_code == 200
    current = resp.json()["current"]
    assert current["age"] == 31
    assert current["pinnacle"]["number"] == 7
    assert current["life_period"]["source"] == "Day"


def test_calculate_chaldean(client):
    resp = client.post("/v1/numerology/calculate", json={**VALID_PAYLOAD, "system": "chaldean"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["system"] == "chaldean"
    assert data["expression"]["original_sum"] == 35


def test_calculate_unknown_system_rejected(client):
    resp = client.post("/v1/numerology/calculate", json={**VALID_PAYLOAD, "system": "kabbalah"})
    assert resp.status_code == 422


def test_calculate_devanagari_birth_date(client):
    resp = client.post("/v1/numerology/calculate", json={**VALID_PAYLOAD, "birth_date": "१९९४-११-२९"})
    assert resp.status_code == 200
    assert resp.json()["life_path"]["final_number"] == 9


def test_calculate_invalid_name_no_letters(client):
    resp = client.post("/v1/numerology/calculate", json={**VALID_PAYLOAD, "full_name": "123 456"})
    assert resp.status_code == 422


def test_calculate_invalid_date_range(client):
    assert client.post("/v1/numerology/calculate", json={**VALID_PAYLOAD, "birth_date": "1799-12-31"}).status_code == 422
    assert client.post("/v1/numerology/calculate", json={**VALID_PAYLOAD, "birth_date": "2101-01-01"}).status_code == 422


def test_master_numbers_hidden_when_disabled(client, monkeypatch):
    monkeypatch.setattr(settings, "show_master_numbers", False)
    data = client.post("/v1/numerology/calculate", json=VALID_PAYLOAD).json()
    assert data["personality"]["final_number"] == 11
    assert data["personality"]["is_master_number"] is False
    assert all(p["is_master_number"] is False for p in data["pinnacles"])


def test_karmic_debt_hidden_when_disabled(client, monkeypatch):
    payload = {"full_name": "Di Lee", "birth_date": "1990-07-14"}
    shown = client.post("/v1/numerology/calculate", json=payload).json()
    assert shown["life_path"]["karmic_debt_number"] == 14

    monkeypatch.setattr(settings, "show_karmic_debt", False)
    hidden = client.post("/v1/numerology/calculate", json=payload).json()
    assert hidden["life_path"]["karmic_debt_number"] is None
    assert hidden["life_path"]["final_number"] == 4


def test_profile_analysis_is_cached(client, make_profile):
    profile = make_profile()
    first = client.get(f"/v1/numerology/profiles/{profile['id']}/analysis")
    assert first.status_code == 200
    data = first.json()
    assert data["profile_id"] == profile["id"]
    assert data["life_path"]["final_number"] == 9
    assert data["calculated_at"] is not None
    assert [p["end_age"] for p in data["pinnacles"]] == [27, 36, 45, None]

    second = client.get(f"/v1/numerology/profiles/{profile['id']}/analysis").json()
    assert second["calculated_at"] == data["calculated_at"]


def test_profile_analysis_per_system(client, make_profile):
    profile = make_profile()
    pythagorean = client.get(f"/v1/numerology/profiles/{profile['id']}/analysis").json()
    chaldean = client.get(f"/v1/numerology/profiles/{profile['id']}/analysis?system=chaldean").json()
    assert pythagorean["system"] == "pythagorean"
    assert chaldean["system"] == "chaldean"
    assert chaldean["expression"]["original_sum"] == 35


def test_profile_analysis_refresh(client, make_profile):
    profile = make_profile()
    client.get(f"/v1/numerology/profiles/{profile['id']}/analysis")
    resp = client.get(f"/v1/numerology/profiles/{profile['id']}/analysis?refresh=true")
    assert resp.status_code == 200
    assert resp.json()["life_path"]["final_number"] == 9


def test_profile_analysis_unknown_profile(client):
    assert client.get("/v1/numerology/profiles/999/analysis").status_code == 404


def test_current_periods(client, make_profile):
    profile = make_profile()
    resp = client.get(f"/v1/numerology/profiles/{profile['id']}/current-periods?today=2026-10-17")
    assert resp.status_code == 200
    data = resp.json()
    assert data["age"] == 31
    assert data["pinnacle"]["period_index"] == 2
    assert data["challenge"]["number"] == 3


def test_current_periods_devanagari_today(client, make_profile):
    profile = make_profile()
    resp = client.get(f"/v1/numerology/profiles/{profile['id']}/current-periods?today=२०२६-१०-१७")
    assert resp.status_code == 200
    assert resp.json()["age"] == 31


def test_current_periods_invalid_today(client, make_profile):
    profile = make_profile()
    resp = client.get(f"/v1/numerology/profiles/{profile['id']}/current-periods?today=yesterday")
    assert resp.status_code == 422


def test_cycles(client):
    resp = client.post("/v1/numerology/cycles", json={"birth_date": "1994-11-29", "today": "2026-10-17"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["date"] == "2026-10-17"
    assert data["personal_year"] == 5
    assert data["personal_month"] == 6
    assert data["personal_day"] == 5
    assert data["universal_day"] == 1
    assert len(data["yearly_forecast"]) == 9
    assert data["yearly_forecast"][0] == {"year": 2026, "personal_year": 5}
