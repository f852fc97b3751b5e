"""Transcript checks, drafting and refinement."""
import json

from report_buddy.db.models import Report

from conftest import auth, make_report, signup

TITLE_MARKER = "You write short titles"


def test_check_ready(client, llm):
    signup(client)
    llm.push('{"ready": true}')

    resp = client.post(
        "/api/generate/check",
        json={"report_type": "incident", "transcript": "Full account."},
        headers=auth(),
    )
    assert resp.status_code == 200
    assert resp.json() == {"ready": True}


def test_check_returns_at_most_two_questions(client, llm):
    signup(client)
    llm.push(json.dumps({"ready": False, "questions": ["Where?", "When?", "Who?"]}))

    resp = client.post(
        "/api/generate/check",
        json={"report_type": "arrest", "transcript": "Partial account."},
        headers=auth(),
    )
    assert resp.json() == {"ready": False, "questions": ["Where?", "When?"]}


def test_check_unparseable_reply_is_retryable_502(client, llm):
    signup(client)
    llm.push("I could not decide.")

    resp = client.post(
        "/api/generate/check",
        json={"report_type": "incident", "transcript": "Account."},
        headers=auth(),
    )
    assert resp.status_code == 502
    assert resp.json()["code"] == "AI_INVALID_RESPONSE"
    assert resp.json()["retryable"] is True


def test_blank_transcript_rejected(client, llm):
    signup(client)
    resp = client.post(
        "/api/generate/check",
        json={"report_type": "incident", "transcript": "   "},
        headers=auth(),
    )
    assert resp.status_code == 400
    assert llm.calls == []


def test_generate_saves_draft_and_title(client, llm, db):
    signup(client)
    report_id = make_report(content=None)
    llm.route(TITLE_MARKER, '"Theft - Main St Market"')
    llm.default = "On 03/01 at 2200 hours I responded to Main St Market."

    resp = client.post(
        "/api/generate/report",
        json={"report_id": report_id, "transcript": "I went to the market.", "incomplete": True},
        headers=auth(),
    )
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["suggested_title"] == "Theft - Main St Market"
    assert data["generated_content"].startswith("On 03/01")

    report = db.get(Report, report_id)
    assert report.transcript == "I went to the market."
    assert report.title == "Theft - Main St Market"

    draft_call = next(c for c in llm.calls if TITLE_MARKER not in c["system"])
    assert "placeholders" in draft_call["messages"][0]["content"]


def test_generate_uses_style_examples(client, llm):
    signup(client)
    client.post(
        "/api/profile/examples",
        json={"report_type": "incident", "content": "SAMPLE NARRATIVE STYLE"},
        headers=auth(),
    )
    report_id = make_report(content=None)

    client.post(
        "/api/generate/report",
        json={"report_id": report_id, "transcript": "Account."},
        headers=auth(),
    )
    draft_call = next(c for c in llm.calls if TITLE_MARKER not in c["system"])
    assert "SAMPLE NARRATIVE STYLE" in draft_call["system"]


def test_generate_unknown_report_is_404(client, llm):
    signup(client)
    resp = client.post(
        "/api/generate/report",
        json={"report_id": "missing", "transcript": "Account."},
        headers=auth(),
    )
    assert resp.status_code == 404
    assert llm.calls == []


def test_refine_replaces_draft_and_clears_final(client, llm, db):
    signup(client)
    report_id = make_report(content="Draft.", final_content="Edited draft.")
    llm.push("Refined draft.")

    resp = client.post(
        "/api/generate/refine",
        json={"report_id": report_id, "refinement": "Add the case number."},
        headers=auth(),
    )
    assert resp.json() == {"report_id": report_id, "generated_content": "Refined draft."}
    assert "Edited draft." in llm.calls[-1]["messages"][0]["content"]

    report = db.get(Report, report_id)
    assert report.generated_content == "Refined draft."
    assert report.final_content is None


def test_refine_without_content_is_rejected(client, llm):
    signup(client)
    report_id = make_report(content=None)

    resp = client.post(
        "/api/generate/refine",
        json={"report_id": report_id, "refinement": "Shorter."},
        headers=auth(),
    )
    assert resp.status_code == 400
