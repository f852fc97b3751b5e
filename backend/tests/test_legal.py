"""Legal analysis and policy documents."""
import json

from report_buddy.db.models import LegalReference, PolicyDocument
from report_buddy.db.seed import DEFAULT_CASE_LAW
from report_buddy.services.legal_service import legal_service, normalize_analysis

from conftest import auth, make_report, signup

ANALYSIS = {
    "validations": [
        {"action": "Pat-down", "support": "Articulated weapon bulge", "case_law": "Terry v. Ohio", "policy": "Policy 4.2"},
    ],
    "clarifications": [
        {"issue": "Consent", "reason": "Not documented", "suggestion": "State who consented"},
    ],
    "relevant_references": [
        {"title": "Graham v. Connor", "citation": "490 U.S. 386 (1989)", "relevance": "Force standard"},
        "not an object",
    ],
}


def test_new_user_gets_own_case_law_copy(client, db):
    signup(client)
    signup(client, "bob")

    for uid in ("alice", "bob"):
        docs = db.query(PolicyDocument).filter(PolicyDocument.user_id == uid).all()
        assert len(docs) == len(DEFAULT_CASE_LAW)
        assert all(d.is_caselaw for d in docs)


def test_policy_crud(client):
    signup(client)

    resp = client.post(
        "/api/legal/policy",
        json={"filename": "Use of Force", "content": "Officers shall..."},
        headers=auth(),
    )
    assert resp.status_code == 201
    policy_id = resp.json()["id"]
    assert resp.json()["is_caselaw"] is False

    listed = client.get("/api/legal/policies", headers=auth()).json()
    assert policy_id in [p["id"] for p in listed]

    resp = client.delete(f"/api/legal/policy/{policy_id}", headers=auth())
    assert resp.json() == {"message": "Policy deleted"}

    resp = client.delete(f"/api/legal/policy/{policy_id}", headers=auth())
    assert resp.status_code == 404
    assert resp.json()["error"] == "Policy not found"


def test_policy_of_other_user_is_not_found(client):
    signup(client)
    signup(client, "bob")
    policy_id = client.post(
        "/api/legal/policy", json={"filename": "Pursuit", "content": "..."}, headers=auth()
    ).json()["id"]

    resp = client.delete(f"/api/legal/policy/{policy_id}", headers=auth("bob"))
    assert resp.status_code == 404


def test_analyze_stores_references(client, llm, db):
    signup(client)
    report_id = make_report()
    llm.push(json.dumps(ANALYSIS))

    resp = client.post(f"/api/legal/analyze/{report_id}", headers=auth())
    assert resp.status_code == 200
    data = resp.json()
    assert len(data["relevant_references"]) == 1

    refs = db.query(LegalReference).filter(LegalReference.report_id == report_id).all()
    by_type = {r.reference_type.value: r for r in refs}
    assert set(by_type) == {"validation", "clarification", "case_law"}
    assert by_type["validation"].title == "Terry v. Ohio"
    assert by_type["validation"].action_validated == "Pat-down"
    assert json.loads(by_type["clarification"].content) == {
        "reason": "Not documented",
        "suggestion": "State who consented",
    }


def test_reanalysis_replaces_references(client, llm, db):
    signup(client)
    report_id = make_report()
    llm.push(json.dumps(ANALYSIS))
    client.post(f"/api/legal/analyze/{report_id}", headers=auth())

    llm.push(json.dumps({"validations": [], "clarifications": [], "relevant_references": [
        {"title": "Mapp v. Ohio", "citation": "367 U.S. 643", "relevance": "Exclusionary rule"},
    ]}))
    client.post(f"/api/legal/analyze/{report_id}", headers=auth())

    db.expire_all()
    titles = [r.title for r in db.query(LegalReference).filter(LegalReference.report_id == report_id)]
    assert titles == ["Mapp v. Ohio"]


def test_unparseable_analysis_keeps_existing_references(client, llm, db):
    signup(client)
    report_id = make_report()
    llm.push(json.dumps(ANALYSIS))
    client.post(f"/api/legal/analyze/{report_id}", headers=auth())

    llm.push("Sorry, I cannot help with that.")
    resp = client.post(f"/api/legal/analyze/{report_id}", headers=auth())
    assert resp.status_code == 502

    db.expire_all()
    assert db.query(LegalReference).filter(LegalReference.report_id == report_id).count() == 3


def test_analysis_prompt_includes_department_policies(client, llm):
    signup(client)
    client.post(
        "/api/legal/policy",
        json={"filename": "Vehicle Pursuit", "content": "Pursuits end at city limits."},
        headers=auth(),
    )
    report_id = make_report()
    llm.push(json.dumps(ANALYSIS))

    client.post(f"/api/legal/analyze/{report_id}", headers=auth())
    assert "Pursuits end at city limits." in llm.calls[-1]["system"]


def test_normalize_analysis_fills_missing_keys():
    assert normalize_analysis({"validations": "oops"}) == {
        "validations": [],
        "clarifications": [],
        "relevant_references": [],
    }


def test_save_references_coerces_non_string_fields(client, db):
    signup(client)
    report_id = make_report()

    saved = legal_service.save_legal_references(db, report_id, {
        "validations": [{"action": ["stop", "frisk"], "support": None, "case_law": None, "policy": None}],
    })
    assert saved == 1
    ref = db.query(LegalReference).filter(LegalReference.report_id == report_id).one()
    assert ref.title == "Policy Support"
    assert ref.action_validated == '["stop", "frisk"]'
