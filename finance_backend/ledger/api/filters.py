# ledger/api/filters.py

import django_filters

from ledger import counterparty as cp_mod
from ledger.models import LedgerEntry


class LedgerEntryFilter(django_filters.FilterSet):
    """
    Extra history filters on top of kind/date (applied by the service):
    ?confirmation_state=pending&is_settled=false&counterparty_kind=user&category=Food
    """

    confirmation_state = django_filters.ChoiceFilter(choices=LedgerEntry.STATE_CHOICES)
    counterparty_kind = django_filters.ChoiceFilter(choices=cp_mod.KIND_CHOICES)
    category = django_filters.CharFilter(field_name="category", lookup_expr="iexact")
    is_settled = django_filters.BooleanFilter()

    class Meta:
        model = LedgerEntry
        fields = ["confirmation_state", "counterparty_kind", "category", "is_settled"]
