"""
Built-in sample dataset and downloadable CSV templates.

The sample dataset seeds every new session and is restored by a reset.
It contains two journal entries with invalid account references and
invoices spread across several aging buckets.
"""
from typing import Dict

from .canonical_fields import RecordKind
from .schemas import Account, CanonicalDataSet, Customer, Invoice, Transaction


SAMPLE_ACCOUNTS = (
    Account("1100", "Cash", "Asset"),
    Account("1200", "Accounts Receivable", "Asset"),
    Account("1300", "Allowance for Doubtful Accounts", "Asset"),  # Contra-asset
    Account("4000", "Sales Revenue", "Revenue"),
    Account("5000", "Cost of Goods Sold", "Expense"),
)

SAMPLE_CUSTOMERS = (
    Customer("CUST-001", "Acme Corp", "finance@acme.com", (10.0, 12.0, 10.0)),
    Customer("CUST-002", "Globex Inc", "ap@globex.com", (20.0, 25.0, 40.0)),  # Worsening
    Customer("CUST-003", "Soylent Corp", "pay@soylent.com", (5.0, 5.0, 5.0)),
)

SAMPLE_INVOICES = (
    Invoice("INV-1001", "CUST-001", "2024-05-01", "2024-05-31", 5000.0, 0.0, 5000.0, "Open"),
    Invoice("INV-0900", "CUST-002", "2024-03-01", "2024-03-31", 12000.0, 2000.0, 10000.0, "Open"),
    Invoice("INV-0850", "CUST-002", "2023-12-01", "2023-12-31", 8500.0, 0.0, 8500.0, "Open"),
    Invoice("INV-0800", "CUST-003", "2024-01-15", "2024-02-15", 3000.0, 3000.0, 0.0, "Paid"),
)

SAMPLE_TRANSACTIONS = (
    Transaction("TXN-001", "2024-05-01", "1200", "4000", 5000.0, "Credit Sale to Acme", "INV-1001"),
    Transaction("TXN-002", "2024-02-10", "1100", "1200", 3000.0, "Payment from Soylent", "INV-0800"),
    # Debit account 9999 is not in the chart of accounts
    Transaction("TXN-ERR-01", "2024-05-02", "9999", "4000", 1500.0, "Suspicious Adjustment"),
    # Credit account 4005 is not in the chart of accounts
    Transaction("TXN-ERR-02", "2024-05-03", "1200", "4005", 200.0, "Misc Revenue unclassified"),
)


def sample_dataset() -> CanonicalDataSet:
    """The dataset every new session starts with."""
    return CanonicalDataSet(
        accounts=SAMPLE_ACCOUNTS,
        customers=SAMPLE_CUSTOMERS,
        invoices=SAMPLE_INVOICES,
        transactions=SAMPLE_TRANSACTIONS,
    )


CSV_TEMPLATES: Dict[RecordKind, Dict[str, str]] = {
    RecordKind.ACCOUNTS: {
        "title": "Chart of Accounts (COA)",
        "filename": "template_coa.csv",
        "content": (
            "account_id,account_name,account_type\n"
            "1100,Cash,Asset\n"
            "1200,Accounts Receivable,Asset\n"
            "4000,Sales Revenue,Revenue\n"
            "5000,Cost of Goods Sold,Expense\n"
        ),
    },
    RecordKind.TRANSACTIONS: {
        "title": "Transactions (Journal)",
        "filename": "template_transactions.csv",
        "content": (
            "transaction_id,transaction_date,debit_account_id,credit_account_id,"
            "amount,reference_invoice_id,description\n"
            "TXN-001,2024-05-01,1200,4000,5000,INV-1001,Credit Sale to Acme\n"
        ),
    },
    RecordKind.INVOICES: {
        "title": "Invoices (AR Detail)",
        "filename": "template_invoices.csv",
        "content": (
            "invoice_id,customer_id,invoice_date,due_date,original_amount,"
            "amount_paid,balance_due,status\n"
            "INV-1001,CUST-001,2024-05-01,2024-05-31,5000,0,5000,Open\n"
        ),
    },
    RecordKind.CUSTOMERS: {
        "title": "Customer Master",
        "filename": "template_customers.csv",
        "content": (
            "customer_id,name,email,risk_score_history\n"
            "CUST-001,Acme Corp,finance@acme.com,10;12;10\n"
        ),
    },
}
