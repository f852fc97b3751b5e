"""Report CRUD, pagination and cascade delete."""
import json

from report_buddy.db.models import (
    CourtPrepMessage,
    CourtPrepSession,
    CourtPrepStatus,
    LegalReference,
    MessageRole,
    ReferenceType,
    Report,
)

from conftest import auth, make_report, signup


def test_create_report_defaults_title(client):
    signup(client)
    resp = client.post("/api/reports", json={"report_type": "arrest"}, headers=auth())
    assert resp.status_code == 201
    data = resp.json()
    assert data["title"] == "New arrest report"
    assert data["status"] == "draft"


def test_create_report_rejects_unknown_type(client):
    signup(client)
    resp = client.post("/api/reports", json={"report_type": "traffic"}, headers=auth())
    assert resp.status_code == 400
    assert "report_type" in resp.json()["error"]


def test_list_reports_paginates_and_caps_limit(client):
    signup(client)
    for i in range(3):
        client.post("/api/reports", json={"report_type": "incident", "title": f"R{i}"}, headers=auth())

    resp = client.get("/api/reports", params={"page": 2, "limit": 2}, headers=auth())
    data = resp.json()
    assert data["total"] == 3
    assert data["page"] == 2
    assert len(data["reports"]) == 1

    resp = client.get("/api/reports", params={"limit": 500}, headers=auth())
    assert resp.json()["limit"] == 100


def test_list_reports_filters_by_status(client):
    signup(client)
    make_report(title="Open")
    done_id = make_report(title="Done")
    client.put(f"/api/reports/{done_id}", json={"status": "completed"}, headers=auth())

    resp = client.get("/api/reports", params={"status": "completed"}, headers=auth())
    assert [r["title"] for r in resp.json()["reports"]] == ["Done"]


def test_reports_are_scoped_to_owner(client):
    signup(client)
    signup(client, "bob")
    report_id = make_report()

    for method in ("get", "delete"):
        resp = getattr(client, method)(f"/api/reports/{report_id}", headers=auth("bob"))
        assert resp.status_code == 404
        assert resp.json() == {"error": "Report not found"}

    resp = client.get("/api/reports", headers=auth("bob"))
    assert resp.json()["total"] == 0


def test_update_requires_fields(client):
    signup(client)
    report_id = make_report()

    resp = client.put(f"/api/reports/{report_id}", json={}, headers=auth())
    assert resp.status_code == 400
    assert resp.json()["error"] == "No updates provided"


def test_final_content_wins_over_generated(client, llm):
    signup(client)
    report_id = make_report(content="Generated draft.")
    client.put(f"/api/reports/{report_id}", json={"final_content": "Officer edit."}, headers=auth())

    llm.push(json.dumps({"charges": [{"charge": "Trespass", "statute": "ORS 164.245", "level": "misdemeanor", "confidence": "high"}]}))
    resp = client.post(f"/api/reports/{report_id}/suggest-charges", headers=auth())
    assert resp.status_code == 200
    assert resp.json()["charges"][0]["charge"] == "Trespass"
    assert "Officer edit." in llm.calls[-1]["messages"][0]["content"]
    assert "Generated draft." not in llm.calls[-1]["messages"][0]["content"]


def test_suggest_charges_caps_at_three(client, llm):
    signup(client)
    report_id = make_report()
    charges = [{"charge": f"Charge {i}", "statute": "x", "level": "felony", "confidence": "low"} for i in range(5)]
    llm.push(json.dumps({"charges": charges}))

    resp = client.post(f"/api/reports/{report_id}/suggest-charges", headers=auth())
    assert len(resp.json()["charges"]) == 3


def test_check_elements_validates_charges(client, llm):
    signup(client)
    report_id = make_report()

    resp = client.post(f"/api/reports/{report_id}/check-elements", json={"charges": []}, headers=auth())
    assert resp.status_code == 400

    resp = client.post(
        f"/api/reports/{report_id}/check-elements", json={"charges": ["x" * 201]}, headers=auth()
    )
    assert resp.status_code == 400
    assert llm.calls == []


def test_check_elements_returns_analysis(client, llm):
    signup(client)
    report_id = make_report()
    llm.push(
        "Here you go:\n"
        + json.dumps({
            "analysis": [{
                "charge": "Burglary",
                "elements": [
                    {"element": "Entry", "status": "met", "evidence": "Entered via window", "suggestion": None},
                    {"element": "Intent", "status": "bogus"},
                ],
                "overall": "needs_work",
                "summary": "Intent is thin.",
            }]
        })
    )

    resp = client.post(
        f"/api/reports/{report_id}/check-elements", json={"charges": ["Burglary"]}, headers=auth()
    )
    assert resp.status_code == 200
    item = resp.json()["analysis"][0]
    assert item["overall"] == "needs_work"
    assert [e["element"] for e in item["elements"]] == ["Entry"]


def test_delete_cascades_to_references_and_sessions(client, db):
    signup(client)
    report_id = make_report()

    db.add(LegalReference(report_id=report_id, reference_type=ReferenceType.case_law, title="Terry v. Ohio"))
    session = CourtPrepSession(report_id=report_id, user_id="alice", status=CourtPrepStatus.active, message_count=1)
    db.add(session)
    db.flush()
    db.add(CourtPrepMessage(session_id=session.id, role=MessageRole.assistant, content="Question?"))
    db.commit()

    resp = client.delete(f"/api/reports/{report_id}", headers=auth())
    assert resp.status_code == 200
    assert resp.json() == {"message": "Report deleted"}

    db.expire_all()
    assert db.query(Report).count() == 0
    assert db.query(LegalReference).count() == 0
    assert db.query(CourtPrepSession).count() == 0
    assert db.query(CourtPrepMessage).count() == 0


def test_detail_includes_legal_references(client, db):
    signup(client)
    report_id = make_report()
    db.add(LegalReference(
        report_id=report_id,
        reference_type=ReferenceType.validation,
        title="Graham v. Connor",
        citation="490 U.S. 386",
        content="Force was objectively reasonable.",
        action_validated="Takedown",
    ))
    db.commit()

    resp = client.get(f"/api/reports/{report_id}", headers=auth())
    refs = resp.json()["legal_references"]
    assert refs[0]["reference_type"] == "validation"
    assert refs[0]["action_validated"] == "Takedown"
