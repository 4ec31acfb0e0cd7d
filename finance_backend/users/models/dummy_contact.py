"""
PATH: users/models/dummy_contact.py

DUMMY CONTACT

A placeholder person created by a registered user to track money lent to or
borrowed from someone without an account.

Rules:
- Owned by exactly one registered user (the only one who can see it)
- Cannot log in, never approves anything
- Names are unique per owner
"""

from __future__ import annotations

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models


class DummyContact(models.Model):
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="dummy_contacts",
    )

    name = models.CharField(max_length=150)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["owner", "name"],
                name="uniq_dummy_contact_name_per_owner",
            )
        ]

    def clean(self):
        self.name = (self.name or "").strip()
        if not self.name:
            raise ValidationError("Contact name is required")

    def __str__(self):
        return self.name
