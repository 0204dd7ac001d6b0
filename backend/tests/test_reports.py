from datetime import date

from numero.numerology_engine import compute_analysis
from numero.reporting import build_analysis_report_pdf
from numero.services import present_analysis


def test_analysis_pdf(client, make_profile):
    profile = make_profile()
    resp = client.get(f"/v1/reports/profiles/{profile['id']}/analysis.pdf")
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    assert "attachment" in resp.headers["content-disposition"]
    assert resp.content.startswith(b"%PDF")


def test_analysis_pdf_chaldean_filename(client, make_profile):
    profile = make_profile()
    resp = client.get(f"/v1/reports/profiles/{profile['id']}/analysis.pdf?system=chaldean")
    assert resp.status_code == 200
    assert f"numerology-report-{profile['id']}-chaldean.pdf" in resp.headers["content-disposition"]


def test_analysis_pdf_unknown_profile(client):
    assert client.get("/v1/reports/profiles/999/analysis.pdf").status_code == 404


def test_build_pdf_directly():
    analysis = present_analysis(compute_analysis("राम शर्मा", date(1994, 11, 29)).to_dict())
    pdf = build_analysis_report_pdf(profile_name="Ram Sharma", birth_date="1994-11-29", analysis=analysis)
    assert pdf.startswith(b"%PDF")
