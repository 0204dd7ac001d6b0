import json

from numero.main import _log_preview


def test_request_id_is_echoed(client):
    resp = client.get("/health", headers={"X-Request-ID": "trace-42"})
    assert resp.headers["x-request-id"] == "trace-42"


def test_request_id_is_generated(client):
    assert len(client.get("/health").headers["x-request-id"]) == 8


def test_pdf_passes_through_with_request_id(client, make_profile):
    profile = make_profile()
    resp = client.get(f"/v1/reports/profiles/{profile['id']}/analysis.pdf")
    assert resp.content.startswith(b"%PDF")
    assert resp.headers["x-request-id"]


def test_log_preview_masks_personal_fields():
    raw = json.dumps(
        {
            "full_name": "John Smith",
            "birth_date": "1994-11-29",
            "system": "pythagorean",
            "profiles": [{"first_name": "Ann", "middle_name": None}],
        }
    ).encode()

    preview = _log_preview(raw, "application/json")

    assert "John" not in preview
    assert "1994" not in preview
    assert "Ann" not in preview
    assert '"system":"pythagorean"' in preview
    assert '"middle_name":null' in preview


def test_log_preview_of_binary_and_broken_json():
    assert _log_preview(b"%PDF-1.4", "application/pdf") == "<8 bytes; application/pdf>"
    assert _log_preview(b"{not json", "application/json") == "{not json"
    assert _log_preview(b"", "application/json") == "-"
