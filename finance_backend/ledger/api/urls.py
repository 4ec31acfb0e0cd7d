# ledger/api/urls.py

from django.urls import path

from ledger.api.views import (
    AnalysisView,
    ConfirmationInboxView,
    ConfirmRequestView,
    EntryDetailView,
    EntryListCreateView,
    EntryRemindView,
    EntrySettleView,
    RejectRequestView,
)

app_name = "ledger"

urlpatterns = [
    path("entries/", EntryListCreateView.as_view(), name="entries"),
    path("entries/<int:entry_id>/", EntryDetailView.as_view(), name="entry-detail"),
    path("entries/<int:entry_id>/settle/", EntrySettleView.as_view(), name="entry-settle"),
    path("entries/<int:entry_id>/remind/", EntryRemindView.as_view(), name="entry-remind"),
    path("analysis/", AnalysisView.as_view(), name="analysis"),
    path("requests/", ConfirmationInboxView.as_view(), name="requests"),
    path("requests/<int:request_id>/confirm/", ConfirmRequestView.as_view(), name="request-confirm"),
    path("requests/<int:request_id>/reject/", RejectRequestView.as_view(), name="request-reject"),
]
