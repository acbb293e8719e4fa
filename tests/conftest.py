import pytest

from app import create_app
from audit_engine.schemas import Account, Invoice, Transaction


def make_invoice(invoice_id: str, due_date: str, balance_due: float,
                 customer_id: str = "CUST-001", status: str = "Open") -> Invoice:
    return Invoice(
        invoice_id=invoice_id,
        customer_id=customer_id,
        invoice_date="2024-01-01",
        due_date=due_date,
        original_amount=balance_due,
        amount_paid=0.0,
        balance_due=balance_due,
        status=status,
    )


def make_transaction(transaction_id: str, debit: str, credit: str, amount: float = 100.0) -> Transaction:
    return Transaction(
        transaction_id=transaction_id,
        transaction_date="2024-05-01",
        debit_account_id=debit,
        credit_account_id=credit,
        amount=amount,
        description="test entry",
    )


@pytest.fixture
def accounts():
    return (
        Account("1100", "Cash", "Asset"),
        Account("1200", "Accounts Receivable", "Asset"),
        Account("4000", "Sales Revenue", "Revenue"),
    )


@pytest.fixture
def app():
    app = create_app(test_config={"TESTING": True, "SECRET_KEY": "test"})
    yield app


@pytest.fixture
def client(app):
    return app.test_client()
