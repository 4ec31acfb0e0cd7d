# settlements/models/contact_alias.py

"""
CONTACT ALIAS (COUNTERPARTY RESOLUTION)

Maps a free-text personal-lending name, as written by `owner`, to a
registered user. The aliased user confirms the mapping; until then the
name keeps its own balance row. Names are never merged on string equality.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models


class ContactAlias(models.Model):
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="contact_aliases",
    )
    display_name = models.CharField(max_length=150)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="aliased_as",
    )

    confirmed = models.BooleanField(default=False)
    confirmed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["display_name"]
        constraints = [
            models.UniqueConstraint(
                fields=["owner", "display_name"],
                name="uniq_contact_alias_per_owner",
            )
        ]

    def __str__(self):
        return f"{self.display_name} -> {self.user_id}"
