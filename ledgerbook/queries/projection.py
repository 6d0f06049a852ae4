"""
Customer View Projection

Turns the stored customer set plus the user's search text and sort
choice into a display-ready list.

Stateless per call: nothing is cached, so a re-query after any engine
call is always current. Each call reads ONE store snapshot, so the list
and the total come from the same state.
"""

import locale
from typing import Callable, Optional, Union

from ledgerbook.models.ledger import Customer, CustomerView, SortOrder
from ledgerbook.storage import LedgerStoreInterface
from ledgerbook.validation import LedgerValidator


def _name_collation_key(customer: Customer) -> str:
    return locale.strxfrm(customer.name.casefold())


def matches_search(search_text: str) -> Callable[[Customer], bool]:
    """
    Predicate for the search box.

    Case-insensitive substring on the name, plain substring on the phone.
    The search text is trimmed first, so " 999" searches for "999".
    """
    needle = search_text.strip()
    folded = needle.casefold()

    def predicate(customer: Customer) -> bool:
        return folded in customer.name.casefold() or needle in customer.phone

    return predicate


def sort_customers(customers: list[Customer], sort_order: SortOrder) -> list[Customer]:
    """
    Sort customers for display.

    The sort is stable, so customers with equal keys keep the store's
    canonical order (name, then id) and repeated calls agree.
    """
    if sort_order == SortOrder.MOST_DUE:
        return sorted(customers, key=lambda c: c.total_due_minor, reverse=True)
    if sort_order == SortOrder.RECENTLY_UPDATED:
        return sorted(customers, key=lambda c: c.last_updated, reverse=True)
    return sorted(customers, key=_name_collation_key)


class CustomerViewProjection:
    """Derives filtered and sorted customer lists from the store."""

    def __init__(
        self,
        store: LedgerStoreInterface,
        validator: Optional[LedgerValidator] = None,
    ):
        self._store = store
        self._validator = validator or LedgerValidator()

    def project(
        self,
        search_text: str = "",
        sort_order: Union[SortOrder, str] = SortOrder.MOST_DUE,
    ) -> CustomerView:
        """
        Build the customer list view.

        total_outstanding is summed over ALL customers, not the
        filtered ones.

        Raises:
            ValidationError: If sort_order is not a known ordering
        """
        sort_order = self._validator.validate_sort_order(sort_order)
        search_text = search_text or ""

        everyone = self._store.query_customers()
        total_minor = sum(c.total_due_minor for c in everyone)

        if search_text.strip():
            predicate = matches_search(search_text)
            shown = [c for c in everyone if predicate(c)]
        else:
            shown = list(everyone)

        return CustomerView(
            customers=sort_customers(shown, sort_order),
            total_outstanding_minor=total_minor,
            search_text=search_text,
            sort_order=sort_order,
        )
