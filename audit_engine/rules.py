"""
Rule framework and compliance rule implementations.
Extensible plugin-style architecture for audit rules.
"""
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple
from dataclasses import dataclass

from config import config as app_config
from .findings import ComplianceIssue, IssueKind
from .schemas import Account, Transaction


@dataclass(frozen=True)
class RuleContext:
    """
    Context object passed to rules containing the record sets they inspect.
    """
    transactions: Tuple[Transaction, ...]
    accounts: Tuple[Account, ...]

    def account_ids(self) -> frozenset:
        """Valid account identifiers from the chart of accounts."""
        return frozenset(account.account_id for account in self.accounts)


class Rule(ABC):
    """
    Abstract base class for compliance rules.

    Each rule has a unique ID, name, and evaluation logic.
    Rules are deterministic and preserve transaction order in their output.
    """

    @property
    @abstractmethod
    def rule_id(self) -> str:
        """Unique identifier for this rule."""
        pass

    @property
    @abstractmethod
    def rule_name(self) -> str:
        """Human-readable name for this rule."""
        pass

    @abstractmethod
    def evaluate(self, context: RuleContext) -> List[ComplianceIssue]:
        """Evaluate rule against context and return issues."""
        pass


class CoaComplianceRule(Rule):
    """
    Flag journal entries whose debit or credit account is not in the chart of accounts.

    Each side is tested independently, so one transaction can produce two issues
    (debit first, then credit).
    """

    @property
    def rule_id(self) -> str:
        return "COA_ACCOUNT_EXISTS"

    @property
    def rule_name(self) -> str:
        return "Journal Accounts Exist in Chart of Accounts"

    def evaluate(self, context: RuleContext) -> List[ComplianceIssue]:
        account_ids = context.account_ids()
        issues = []

        for txn in context.transactions:
            if txn.debit_account_id not in account_ids:
                issues.append(self._issue(
                    txn,
                    IssueKind.INVALID_DEBIT_ACCOUNT,
                    f"Debit Account ID {txn.debit_account_id} not found in COA."
                ))
            if txn.credit_account_id not in account_ids:
                issues.append(self._issue(
                    txn,
                    IssueKind.INVALID_CREDIT_ACCOUNT,
                    f"Credit Account ID {txn.credit_account_id} not found in COA."
                ))

        return issues

    def _issue(self, txn: Transaction, kind: IssueKind, description: str) -> ComplianceIssue:
        return ComplianceIssue(
            transaction_id=txn.transaction_id,
            kind=kind,
            description=description,
            severity=app_config.severity.get_severity(kind.value)
        )


class RuleRegistry:
    """
    Central registry for compliance rules.

    Adding a new rule:
    1. Create a Rule subclass
    2. Register it here
    3. No other code changes needed
    """

    def __init__(self):
        self._rules: List[Rule] = []

    def register(self, rule: Rule):
        """Register a rule."""
        self._rules.append(rule)

    def get_all_rules(self) -> List[Rule]:
        """Get all registered rules."""
        return self._rules.copy()

    def get_rule(self, rule_id: str) -> Optional[Rule]:
        """Get rule by ID."""
        for rule in self._rules:
            if rule.rule_id == rule_id:
                return rule
        return None

    def evaluate_all(self, context: RuleContext) -> List[ComplianceIssue]:
        """Evaluate all registered rules and aggregate issues."""
        all_issues = []
        for rule in self._rules:
            all_issues.extend(rule.evaluate(context))
        return all_issues


# Create global registry and register rules
default_registry = RuleRegistry()
default_registry.register(CoaComplianceRule())


def check_compliance(transactions: Sequence[Transaction],
                     accounts: Sequence[Account]) -> Tuple[ComplianceIssue, ...]:
    """
    Validate transaction account references against the chart of accounts.

    Pure and order-preserving: issues follow the order of `transactions`.
    """
    context = RuleContext(transactions=tuple(transactions), accounts=tuple(accounts))
    return tuple(default_registry.evaluate_all(context))
