import json

import pytest

from audit_engine.canonical_fields import RecordKind
from audit_engine.normalize import normalize, normalize_records
from audit_engine.schemas import Account, NormalizationError


def test_coa_template_row():
    dataset = normalize("account_id,account_name,account_type\n1100,Cash,Asset", "csv")

    assert dataset.kinds() == [RecordKind.ACCOUNTS]
    assert dataset.records[RecordKind.ACCOUNTS] == (Account("1100", "Cash", "Asset"),)
    assert dataset.warnings == []


def test_customers_detected_and_scores_parsed():
    text = (
        "customer_id,name,email,risk_score_history\n"
        'CUST-9,"Acme, Inc",ap@acme.com,10;x;30\n'
        "CUST-8,Beta,b@beta.com,\n"
    )
    dataset = normalize(text, "csv")
    first, second = dataset.records[RecordKind.CUSTOMERS]

    assert first.name == "Acme, Inc"
    assert first.risk_score_history == (10.0, 0.0, 30.0)
    assert second.risk_score_history == ()
    assert [w.field for w in dataset.warnings] == ["risk_score_history"]


def test_invoice_numbers_default_to_zero():
    text = (
        "invoice_id,customer_id,invoice_date,due_date,original_amount,amount_paid,balance_due,status\n"
        "INV-1,CUST-1,2024-05-01,2024-05-31,abc,0,1250.50,Open\n"
    )
    dataset = normalize(text, "csv")
    invoice = dataset.records[RecordKind.INVOICES][0]

    assert invoice.original_amount == 0.0
    assert invoice.amount_paid == 0.0
    assert invoice.balance_due == 1250.5
    assert len(dataset.warnings) == 1
    assert dataset.warnings[0].field == "original_amount"
    assert dataset.warnings[0].row_number == 1


def test_transactions_with_missing_trailing_fields():
    text = (
        "transaction_id,transaction_date,debit_account_id,credit_account_id,amount,reference_invoice_id,description\n"
        "TXN-1,2024-05-01,1200,4000,5000\n"
    )
    txn = normalize(text, "csv").records[RecordKind.TRANSACTIONS][0]

    assert txn.amount == 5000.0
    assert txn.reference_invoice_id is None
    assert txn.description == ""


def test_header_detection_order_prefers_accounts():
    text = "account_id,account_type,transaction_id,debit_account_id\n1,Asset,T1,1\n"

    assert normalize(text, "csv").kinds() == [RecordKind.ACCOUNTS]


def test_unrecognized_headers_rejected():
    with pytest.raises(NormalizationError):
        normalize("foo,bar\n1,2\n", "csv")


def test_unknown_account_type_passes_through_with_warning():
    dataset = normalize("account_id,account_name,account_type\n2100,Payables,Liabilities\n", "csv")

    assert dataset.records[RecordKind.ACCOUNTS][0].account_type == "Liabilities"
    assert dataset.warnings[0].field == "account_type"


def test_json_document_with_several_kinds():
    payload = json.dumps({
        "coa": [{"account_id": "1100", "account_name": "Cash", "account_type": "Asset"}],
        "invoices": [{
            "invoice_id": "INV-1", "customer_id": "C1", "invoice_date": "2024-01-01",
            "due_date": "2024-01-31", "original_amount": 100, "amount_paid": 40,
            "balance_due": 60, "status": "Open"
        }],
        "customers": [{"customer_id": "C1", "name": "C One", "email": "c@one.com",
                       "risk_score_history": [10, 20]}],
    })
    dataset = normalize(payload.encode("utf-8"), filename="export.json")

    assert dataset.source_format == "json"
    assert dataset.kinds() == [RecordKind.ACCOUNTS, RecordKind.CUSTOMERS, RecordKind.INVOICES]
    assert dataset.records[RecordKind.INVOICES][0].balance_due == 60.0
    assert dataset.records[RecordKind.CUSTOMERS][0].risk_score_history == (10.0, 20.0)


@pytest.mark.parametrize("payload", [
    "{not json",
    "[1, 2, 3]",
    '{"ledger": []}',
    '{"coa": {"account_id": "1"}}',
    '{"coa": ["1100"]}',
])
def test_bad_json_rejected(payload):
    with pytest.raises(NormalizationError):
        normalize(payload, "json")


def test_bom_is_tolerated():
    raw = "\ufeffaccount_id,account_name,account_type\n1100,Cash,Asset\n".encode("utf-8")

    dataset = normalize(raw, filename="coa.csv")

    assert dataset.records[RecordKind.ACCOUNTS][0].account_id == "1100"


def test_normalize_records_for_api_rows():
    records, warnings = normalize_records("coa", [{"ACCOUNT_ID": 1100, "account_name": "Cash", "account_type": "Asset"}])

    assert records == (Account("1100", "Cash", "Asset"),)
    assert warnings == []


def test_normalize_records_unknown_kind():
    with pytest.raises(NormalizationError):
        normalize_records("ledger", [])


def test_json_null_key_is_treated_as_absent():
    payload = json.dumps({
        "coa": None,
        "customers": [{"customer_id": "C1", "name": "C One", "email": "c@one.com",
                       "risk_score_history": "10;20"}],
    })

    dataset = normalize(payload, "json")

    assert dataset.kinds() == [RecordKind.CUSTOMERS]
    assert dataset.records[RecordKind.CUSTOMERS][0].customer_id == "C1"


def test_json_with_only_null_keys_rejected():
    with pytest.raises(NormalizationError):
        normalize('{"coa": null, "invoices": null}', "json")


@pytest.mark.parametrize("raw", ["1_000", "5,000.00"])
def test_digit_separators_are_not_numbers(raw):
    text = (
        "invoice_id,customer_id,invoice_date,due_date,original_amount,amount_paid,balance_due,status\n"
        f'INV-1,CUST-1,2024-05-01,2024-05-31,100,0,"{raw}",Open\n'
    )
    dataset = normalize(text, "csv")

    assert dataset.records[RecordKind.INVOICES][0].balance_due == 0.0
    assert [w.field for w in dataset.warnings] == ["balance_due"]
