# ledger/models/pair_lock.py

"""
DEBT PAIR LOCK

One row per unordered pair of registered users. Netting locks the row with
SELECT ... FOR UPDATE before reading the pair's open halves, so two netting
steps on the same pair run one after the other while other pairs proceed
in parallel.

user_low / user_high are ordered by the string form of the user id.
"""

from __future__ import annotations

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models


class DebtPairLock(models.Model):
    user_low = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
    )
    user_high = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["user_low", "user_high"],
                name="uniq_debt_pair_lock",
            )
        ]

    def clean(self):
        if self.user_low_id == self.user_high_id:
            raise ValidationError("A debt pair needs two different users")
        if str(self.user_low_id) > str(self.user_high_id):
            raise ValidationError("user_low must sort before user_high")

    def __str__(self):
        return f"pair {self.user_low_id} / {self.user_high_id}"
