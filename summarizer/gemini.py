"""
Gemini summarization module for audit commentary.

This module asks the Gemini generateContent REST endpoint for narrative
commentary on audit results. Every call is best-effort: failures are logged
and turned into placeholder text, never raised to the caller.
"""
import json
import logging
from datetime import date
from typing import Optional, Sequence, Union

import requests

from audit_engine.aging import age_in_days, parse_reference_date, parse_due_date
from audit_engine.schemas import AgingBucket, Customer, Invoice

logger = logging.getLogger(__name__)

CONNECTION_ERROR_MESSAGE = "Error connecting to AI service. Please check API Key."
SUMMARY_ERROR_MESSAGE = "Error generating summary."
EMPTY_ANALYSIS_MESSAGE = "Unable to generate analysis."
EMPTY_SUMMARY_MESSAGE = "Unable to generate summary."


def build_credit_risk_prompt(customer: Customer, invoices: Sequence[Invoice],
                             reference_date: Union[date, str]) -> str:
    """Build the credit risk prompt for one customer's invoices."""
    ref = parse_reference_date(reference_date)
    customer_invoices = [inv for inv in invoices if inv.customer_id == customer.customer_id]

    total_due = sum(inv.balance_due for inv in customer_invoices)
    overdue_count = 0
    for inv in customer_invoices:
        age = age_in_days(ref, parse_due_date(inv.due_date))
        if age is not None and age > 0:
            overdue_count += 1

    invoice_details = json.dumps(
        [{"date": inv.invoice_date, "due": inv.due_date, "amount": inv.balance_due}
         for inv in customer_invoices],
        indent=2
    )
    scores = ", ".join(f"{score:g}" for score in customer.risk_score_history)

    return f"""
Role: You are a Senior Credit Risk Auditor.
Task: Analyze the following customer for credit risk and suggest an audit approach.

Customer Profile:
- Name: {customer.name}
- Historical Risk Scores (Last 3 quarters): {scores} (Lower is better)

Current Financial Status (as of {ref.date().isoformat()}):
- Total Balance Due: ${total_due:,.2f}
- Number of Open Invoices: {len(customer_invoices)}
- Number of Overdue Invoices: {overdue_count}

Invoices Details:
{invoice_details}

Please provide:
1. A calculated risk assessment (Low/Medium/High).
2. A brief analysis of their payment behavior.
3. Recommended audit procedure (e.g., "Positive Confirmation Request", "Specific Allowance Provision").

Keep the response concise and professional (under 200 words).
""".strip()


def build_audit_summary_prompt(compliance_issue_count: int,
                               aging_buckets: Sequence[AgingBucket]) -> str:
    """Build the executive summary prompt."""
    buckets_json = json.dumps([b.to_dict() for b in aging_buckets])

    return f"""
Role: You are a Chief Audit Executive.
Task: Write a brief executive summary of the Accounts Receivable Audit findings.

Data:
1. Compliance Testing: We found {compliance_issue_count} transactions with invalid Chart of Accounts codes.
2. Substantive Testing (Aging Analysis):
   {buckets_json}

Please summarize:
- The overall health of the AR portfolio.
- The adequacy of the allowance for doubtful accounts based on the aging.
- Any immediate red flags regarding internal controls (compliance).
""".strip()


class GeminiSummarizer:
    """
    Generate audit commentary with the Gemini API.

    Uses the generateContent REST endpoint with the API key sent in the
    x-goog-api-key header.
    """

    def __init__(self, api_key: Optional[str], model: str = 'gemini-2.5-flash',
                 endpoint: Optional[str] = None, timeout: float = 60.0,
                 session: Optional[requests.Session] = None):
        """
        Initialize Gemini summarizer.

        Args:
            api_key: Gemini API key; calls degrade to placeholders when missing
            model: Model name
            endpoint: Full generateContent URL (defaults to the public endpoint for model)
            timeout: HTTP timeout in seconds
            session: Optional requests session (for connection reuse)
        """
        self.api_key = api_key
        self.model = model
        self.endpoint = endpoint or (
            f"https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
        )
        self.timeout = timeout
        self._http = session or requests
        logger.debug(f"[AI] Initialized Gemini summarizer (model={model}, configured={bool(api_key)})")

    @classmethod
    def from_config(cls, ai_config) -> "GeminiSummarizer":
        """Create a summarizer from an AISummaryConfig."""
        return cls(
            api_key=ai_config.api_key,
            model=ai_config.model,
            endpoint=ai_config.get_endpoint(),
            timeout=ai_config.request_timeout_seconds
        )

    def summarize_credit_risk(self, customer: Customer, invoices: Sequence[Invoice],
                              reference_date: Union[date, str],
                              temperature: float = 0.2) -> str:
        """
        Credit risk commentary for one customer.

        Returns:
            Model text, or a placeholder message on any failure
        """
        try:
            prompt = build_credit_risk_prompt(customer, invoices, reference_date)
            text = self._generate(prompt, temperature)
        except Exception as e:
            logger.error(f"[AI] Credit risk analysis failed for {customer.customer_id}: {e}", exc_info=True)
            return CONNECTION_ERROR_MESSAGE
        return text or EMPTY_ANALYSIS_MESSAGE

    def summarize_audit(self, compliance_issue_count: int,
                        aging_buckets: Sequence[AgingBucket],
                        temperature: float = 0.3) -> str:
        """
        Executive summary of compliance and aging results.

        Returns:
            Model text, or a placeholder message on any failure
        """
        try:
            prompt = build_audit_summary_prompt(compliance_issue_count, aging_buckets)
            text = self._generate(prompt, temperature)
        except Exception as e:
            logger.error(f"[AI] Audit summary failed: {e}", exc_info=True)
            return SUMMARY_ERROR_MESSAGE
        return text or EMPTY_SUMMARY_MESSAGE

    def _generate(self, prompt: str, temperature: float) -> str:
        """
        Call generateContent and return the concatenated text parts.

        Raises:
            RuntimeError: If no API key is configured or the API answers with an error
            requests.exceptions.RequestException: On network errors
        """
        if not self.api_key:
            raise RuntimeError("Gemini API key is not configured")

        body = {
            'contents': [{'role': 'user', 'parts': [{'text': prompt}]}],
            'generationConfig': {'temperature': temperature},
        }
        headers = {
            'x-goog-api-key': self.api_key,
            'Content-Type': 'application/json',
        }

        logger.debug(f"[AI] POST {self.endpoint} (prompt length {len(prompt)})")
        response = self._http.post(self.endpoint, json=body, headers=headers, timeout=self.timeout)

        if response.status_code != 200:
            raise RuntimeError(
                f"Gemini API error. Status: {response.status_code}, Response: {response.text[:500]}"
            )

        payload = response.json()
        candidates = payload.get('candidates') or []
        if not candidates:
            logger.warning(f"[AI] Response had no candidates: {str(payload)[:500]}")
            return ""

        parts = (candidates[0].get('content') or {}).get('parts') or []
        return "".join(part.get('text', '') for part in parts).strip()
