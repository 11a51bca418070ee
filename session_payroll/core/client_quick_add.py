"""
Quick-add clients straight from unmatched calendar events.

An unmatched title like "Νίκος Αντωνίου Online" suggests the client
"Νίκος Αντωνίου"; the default price split is used unless given.
"""
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from session_payroll import config
from session_payroll.core.client_validator import validate_client_fields
from session_payroll.core.models import Client
from session_payroll.core.repositories import StoreError
from session_payroll.core.text_normalizer import extract_first_words


@dataclass(frozen=True)
class ClientAdded:
    client: Client


@dataclass(frozen=True)
class ClientAddFailed:
    name: str
    errors: Tuple[str, ...]


QuickAddResult = Union[ClientAdded, ClientAddFailed]


def suggest_client_name(event_title: str) -> str:
    """First two words of the title, original casing"""
    return extract_first_words((event_title or '').strip(), config.MATCH_MAX_WORDS)


class ClientQuickAdd:
    def __init__(self, roster_store):
        self.roster_store = roster_store

    def add_client(self,
                   name: str,
                   employee_id: str,
                   price=None,
                   employee_price=None,
                   company_price=None,
                   pending_payment: bool = False) -> QuickAddResult:
        """
        Validate and create a client for an employee

        Missing prices fall back to DEFAULT_SESSION_PRICE /
        DEFAULT_EMPLOYEE_SHARE / DEFAULT_COMPANY_SHARE.

        Returns:
            ClientAdded with the stored client, or ClientAddFailed with the
            validation/storage messages
        """
        name = (name or '').strip()
        price = config.DEFAULT_SESSION_PRICE if price is None else price
        employee_price = config.DEFAULT_EMPLOYEE_SHARE if employee_price is None else employee_price
        company_price = config.DEFAULT_COMPANY_SHARE if company_price is None else company_price

        try:
            existing = self.roster_store.get_clients(employee_id)
        except StoreError as e:
            print(f"❌ Could not load clients: {e}")
            return ClientAddFailed(name, (str(e),))

        validation = validate_client_fields(
            name, price, employee_price, company_price,
            employee_id=employee_id,
            existing_clients=existing,
        )
        if not validation.is_valid:
            return ClientAddFailed(name, tuple(validation.messages()))

        try:
            client = self.roster_store.create_client(Client(
                name=name,
                price=price,
                employee_price=employee_price,
                company_price=company_price,
                employee_id=employee_id,
                pending_payment=pending_payment,
            ))
        except StoreError as e:
            print(f"❌ Could not create client: {e}")
            return ClientAddFailed(name, (str(e),))

        print(f"✅ Added client: {client.name} (€{client.price})")
        return ClientAdded(client)

    def add_from_event_title(self, event_title: str, employee_id: str,
                             name: Optional[str] = None, **prices) -> QuickAddResult:
        """Quick-add using the name suggested by an unmatched event title"""
        return self.add_client(name or suggest_client_name(event_title), employee_id, **prices)
