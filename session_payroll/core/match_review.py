"""
Match Review

Human-in-the-loop side of matching. Uncertain (MEDIUM/LOW) matches are
confirmed or rejected here; the decisions are stored per employee and fed
back into the next payroll calculation:

    decisions = reviewer.load_decisions(employee.id)
    calculator.calculate_payroll(..., confirmed_matches=decisions)

Confirmed titles then count for the chosen client, rejected ones stay
unmatched, and neither shows up for review again.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Union

from session_payroll.config import REJECTED_MATCH_MARKER
from session_payroll.core.models import UncertainMatch
from session_payroll.core.repositories import StoreError
from session_payroll.core.text_normalizer import normalize


@dataclass(frozen=True)
class Confirmed:
    event_title: str
    client_name: str


@dataclass(frozen=True)
class Rejected:
    event_title: str


@dataclass(frozen=True)
class ConfirmationError:
    event_title: str
    message: str


ConfirmationResult = Union[Confirmed, Rejected, ConfirmationError]


class MatchReviewer:
    """Stores confirm/reject decisions through a confirmation store"""

    def __init__(self, store):
        self.store = store

    def confirm_match(self,
                      match: UncertainMatch,
                      employee_id: str,
                      client_name: Optional[str] = None) -> ConfirmationResult:
        """
        Confirm an uncertain match

        Args:
            match: The uncertain match being reviewed
            employee_id: Employee the decision belongs to
            client_name: Client to assign; defaults to the suggested match

        Returns:
            Confirmed, or ConfirmationError when there is nothing to confirm
            or the store fails
        """
        if client_name is None:
            if match.suggested_match is None:
                return ConfirmationError(match.event_title, "No suggested match to confirm")
            client_name = match.suggested_match.client_name

        try:
            self.store.save_confirmation(match.event_title, client_name, employee_id)
        except StoreError as e:
            print(f"❌ Error saving confirmation: {e}")
            return ConfirmationError(match.event_title, str(e))

        return Confirmed(match.event_title, client_name)

    def reject_match(self, match: UncertainMatch, employee_id: str) -> ConfirmationResult:
        """Reject an uncertain match; the title will stay unmatched from now on"""
        try:
            self.store.save_confirmation(match.event_title, REJECTED_MATCH_MARKER, employee_id)
        except StoreError as e:
            print(f"❌ Error saving rejection: {e}")
            return ConfirmationError(match.event_title, str(e))

        return Rejected(match.event_title)

    def filter_uncertain_matches(self,
                                 matches: Sequence[UncertainMatch],
                                 employee_id: str) -> List[UncertainMatch]:
        """Drop matches that already have a decision (one batch lookup)"""
        decisions = self.load_decisions(employee_id)
        return [match for match in matches if normalize(match.event_title) not in decisions]

    def load_decisions(self, employee_id: str) -> Dict[str, str]:
        """Decisions for calculate_payroll: normalized title -> client name or marker"""
        try:
            return self.store.get_all_confirmed_matches(employee_id)
        except StoreError as e:
            print(f"⚠️  Could not load stored decisions: {e}")
            return {}
