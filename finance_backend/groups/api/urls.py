# groups/api/urls.py

from django.urls import path

from groups.api.views import (
    GroupDetailView,
    GroupExpenseListCreateView,
    GroupListCreateView,
    GroupMemberCreateView,
    GroupTallyView,
)

app_name = "groups"

urlpatterns = [
    path("", GroupListCreateView.as_view(), name="groups"),
    path("<int:group_id>/", GroupDetailView.as_view(), name="group-detail"),
    path("<int:group_id>/members/", GroupMemberCreateView.as_view(), name="group-members"),
    path("<int:group_id>/expenses/", GroupExpenseListCreateView.as_view(), name="group-expenses"),
    path("<int:group_id>/tally/", GroupTallyView.as_view(), name="group-tally"),
]
