from .entries import AnalysisView, EntryDetailView, EntryListCreateView, EntryRemindView, EntrySettleView
from .requests import ConfirmationInboxView, ConfirmRequestView, RejectRequestView

__all__ = [
    "AnalysisView",
    "EntryDetailView",
    "EntryListCreateView",
    "EntryRemindView",
    "EntrySettleView",
    "ConfirmationInboxView",
    "ConfirmRequestView",
    "RejectRequestView",
]
