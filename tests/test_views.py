import io

import pytest

from summarizer.gemini import GeminiSummarizer, SUMMARY_ERROR_MESSAGE
import web.views


def upload(client, *files):
    data = {"files": [(io.BytesIO(content), name) for name, content in files]}
    return client.post("/upload", data=data, content_type="multipart/form-data")


def test_health(client):
    assert client.get("/health").get_json() == {"status": "ok"}


def test_new_session_starts_with_samples(client):
    body = client.get("/api/dataset").get_json()

    assert body["counts"] == {"coa": 5, "customers": 3, "invoices": 4, "transactions": 4}
    assert body["reference_date"] == "2024-07-01"
    assert body["coa"][0] == {"account_id": "1100", "account_name": "Cash", "account_type": "Asset"}


def test_compliance_for_samples(client):
    body = client.get("/api/compliance").get_json()

    assert body["count"] == 2
    assert [i["issue_type"] for i in body["issues"]] == ["Invalid Debit Account", "Invalid Credit Account"]


def test_aging_for_samples(client):
    body = client.get("/api/aging").get_json()

    assert [b["bucket"] for b in body["buckets"]] == ["Current", "1-30 Days", "31-60 Days", "61-90 Days", "90+ Days"]
    assert body["total_amount"] == 23500.0
    assert body["total_allowance"] == pytest.approx(9750.0)


def test_upload_replaces_accounts(client):
    response = upload(client, ("coa.csv", b"account_id,account_name,account_type\n9999,Suspense,Asset\n"))

    assert response.status_code == 200
    body = response.get_json()
    assert body["loaded"] == ["COA (CSV)"]
    assert body["message"] == "Successfully loaded: COA (CSV)"
    assert client.get("/api/dataset").get_json()["counts"]["coa"] == 1


def test_upload_several_files(client):
    response = upload(
        client,
        ("coa.csv", b"account_id,account_name,account_type\n1200,AR,Asset\n4000,Sales,Revenue\n4005,Misc,Revenue\n"),
        ("notes.csv", b"foo,bar\n1,2\n"),
    )

    body = response.get_json()
    assert response.status_code == 200
    assert body["rejected"][0]["filename"] == "notes.csv"
    # 9999 and the 1100 on TXN-002 remain unknown
    assert client.get("/api/compliance").get_json()["count"] == 2


def test_upload_nothing_recognized(client):
    response = upload(client, ("notes.csv", b"foo,bar\n1,2\n"))

    assert response.status_code == 422
    assert response.get_json()["error"] == "No recognized data found. Please check CSV headers."
    assert client.get("/api/dataset").get_json()["counts"]["coa"] == 5


def test_upload_unsupported_extension(client):
    response = upload(client, ("report.pdf", b"%PDF"))

    assert response.status_code == 422
    assert response.get_json()["rejected"] == [{"filename": "report.pdf", "reason": "Unsupported file type"}]


def test_upload_without_file(client):
    response = client.post("/upload", data={}, content_type="multipart/form-data")

    assert response.status_code == 400


def test_put_dataset(client):
    rows = [{"transaction_id": "T1", "transaction_date": "2024-05-01", "debit_account_id": "1200",
             "credit_account_id": "4000", "amount": "25", "description": "ok"}]

    response = client.put("/api/dataset/transactions", json=rows)

    assert response.status_code == 200
    assert response.get_json()["count"] == 1
    assert client.get("/api/compliance").get_json()["count"] == 0


def test_put_dataset_bad_requests(client):
    assert client.put("/api/dataset/ledger", json=[]).status_code == 400
    assert client.put("/api/dataset/coa", json={"coa": []}).status_code == 400
    assert client.put("/api/dataset/coa", json=["1100"]).status_code == 400


def test_reference_date(client):
    response = client.put("/api/reference-date", json={"reference_date": "2024-06-15"})

    assert response.get_json() == {"reference_date": "2024-06-15"}
    buckets = client.get("/api/aging").get_json()["buckets"]
    assert buckets[1]["invoice_count"] == 1
    assert client.put("/api/reference-date", json={}).status_code == 400
    assert client.put("/api/reference-date", json={"reference_date": "soon"}).status_code == 400


def test_reset_restores_samples(client):
    client.put("/api/dataset/invoices", json=[])

    body = client.post("/api/reset").get_json()

    assert body["counts"]["invoices"] == 4
    assert client.get("/api/aging").get_json()["invoice_count"] == 3


def test_sessions_are_isolated(app):
    first, second = app.test_client(), app.test_client()

    first.put("/api/dataset/coa", json=[])

    assert first.get("/api/dataset").get_json()["counts"]["coa"] == 0
    assert second.get("/api/dataset").get_json()["counts"]["coa"] == 5


def test_kpis(client):
    body = client.get("/api/kpis").get_json()

    assert body["total_receivables"] == 23500.0
    assert body["compliance_issue_count"] == 2
    assert body["reference_date"] == "2024-07-01"


def test_customer_exposure(client):
    customers = client.get("/api/customers/exposure").get_json()["customers"]

    assert [c["customer_id"] for c in customers] == ["CUST-001", "CUST-002", "CUST-003"]
    assert customers[1]["total_due"] == 18500.0


def test_exports(client):
    compliance = client.get("/export/compliance.csv")
    aging = client.get("/export/aging.csv")

    assert compliance.mimetype == "text/csv"
    assert compliance.data.decode().splitlines()[0] == "transaction_id,issue_type,description,severity"
    assert "aging_2024-07-01.csv" in aging.headers["Content-Disposition"]
    assert len(aging.data.decode().splitlines()) == 6


def test_templates(client):
    response = client.get("/templates/coa.csv")

    assert response.status_code == 200
    assert response.data.decode().startswith("account_id,account_name,account_type")
    assert client.get("/templates/ledger.csv").status_code == 404


def test_ai_credit_risk(client, monkeypatch):
    captured = {}

    class FakeSummarizer:
        def summarize_credit_risk(self, customer, invoices, reference_date, temperature=0.2):
            captured["customer"] = customer.customer_id
            captured["temperature"] = temperature
            return "Medium risk"

    monkeypatch.setattr(web.views, "get_summarizer", lambda: FakeSummarizer())

    body = client.post("/api/ai/credit-risk/CUST-002").get_json()

    assert body == {"customer_id": "CUST-002", "analysis": "Medium risk"}
    assert captured == {"customer": "CUST-002", "temperature": 0.2}
    assert client.post("/api/ai/credit-risk/NOPE").status_code == 404


def test_ai_audit_summary_without_key(client, monkeypatch):
    monkeypatch.setattr(web.views, "get_summarizer", lambda: GeminiSummarizer(api_key=None))

    response = client.post("/api/ai/audit-summary")

    assert response.status_code == 200
    assert response.get_json()["summary"] == SUMMARY_ERROR_MESSAGE
