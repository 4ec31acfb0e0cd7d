# settlements/api/urls.py

from django.urls import path

from settlements.api.views import (
    BalanceSettlementView,
    ContactAliasConfirmView,
    ContactAliasListCreateView,
    SettlementHistoryView,
)

app_name = "settlements"

urlpatterns = [
    path("", BalanceSettlementView.as_view(), name="balances"),
    path("history/", SettlementHistoryView.as_view(), name="history"),
    path("aliases/", ContactAliasListCreateView.as_view(), name="aliases"),
    path("aliases/<int:alias_id>/confirm/", ContactAliasConfirmView.as_view(), name="alias-confirm"),
]
