import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("users", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="LedgerEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "kind",
                    models.CharField(
                        choices=[
                            ("income", "Income"),
                            ("expense", "Expense"),
                            ("investment", "Investment"),
                            ("lend", "Lend"),
                            ("borrow", "Borrow"),
                        ],
                        max_length=12,
                    ),
                ),
                (
                    "amount",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Magnitude; direction is implied by kind",
                        max_digits=14,
                    ),
                ),
                ("category", models.CharField(blank=True, default="", max_length=100)),
                (
                    "investment_type",
                    models.CharField(
                        blank=True,
                        choices=[("buy", "Buy"), ("sell", "Sell")],
                        default="",
                        max_length=4,
                    ),
                ),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("date", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "counterparty_kind",
                    models.CharField(
                        blank=True,
                        choices=[("user", "Registered user"), ("guest", "Guest"), ("dummy", "Dummy contact")],
                        default="",
                        max_length=8,
                    ),
                ),
                ("counterparty_guest_name", models.CharField(blank=True, default="", max_length=150)),
                (
                    "confirmation_state",
                    models.CharField(
                        choices=[("pending", "Pending"), ("confirmed", "Confirmed"), ("rejected", "Rejected")],
                        default="confirmed",
                        max_length=10,
                    ),
                ),
                ("is_settled", models.BooleanField(default=False)),
                (
                    "settlement_state",
                    models.CharField(
                        choices=[("none", "None"), ("requested", "Requested"), ("confirmed", "Confirmed")],
                        default="none",
                        max_length=10,
                    ),
                ),
                (
                    "is_proxy",
                    models.BooleanField(
                        default=False,
                        help_text="Reciprocal half kept by the owner on behalf of a dummy contact",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="ledger_entries",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "counterparty_user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="ledger_entries_as_counterparty",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "counterparty_contact",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="ledger_entries",
                        to="users.dummycontact",
                    ),
                ),
                (
                    "linked_entry",
                    models.OneToOneField(
                        blank=True,
                        help_text="Reciprocal half owned by the counterparty",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="linked_from",
                        to="ledger.ledgerentry",
                    ),
                ),
            ],
            options={
                "verbose_name": "Ledger Entry",
                "verbose_name_plural": "Ledger Entries",
                "ordering": ["-date", "-created_at"],
                "indexes": [
                    models.Index(fields=["owner", "kind"], name="ledger_ledg_owner_i_kind_idx"),
                    models.Index(fields=["owner", "date"], name="ledger_ledg_owner_i_date_idx"),
                    models.Index(
                        fields=["owner", "kind", "counterparty_user", "is_settled"],
                        name="ledger_ledg_owner_pair_idx",
                    ),
                    models.Index(fields=["confirmation_state"], name="ledger_ledg_confirm_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount__gte", 0)),
                        name="ledger_entry_amount_non_negative",
                    ),
                    models.CheckConstraint(
                        condition=(
                            models.Q(
                                counterparty_kind="",
                                counterparty_user__isnull=True,
                                counterparty_guest_name="",
                                counterparty_contact__isnull=True,
                            )
                            | models.Q(
                                counterparty_kind="user",
                                counterparty_user__isnull=False,
                                counterparty_guest_name="",
                                counterparty_contact__isnull=True,
                            )
                            | (
                                models.Q(
                                    counterparty_kind="guest",
                                    counterparty_user__isnull=True,
                                    counterparty_contact__isnull=True,
                                )
                                & ~models.Q(counterparty_guest_name="")
                            )
                            | models.Q(
                                counterparty_kind="dummy",
                                counterparty_user__isnull=True,
                                counterparty_guest_name="",
                                counterparty_contact__isnull=False,
                            )
                        ),
                        name="ledger_entry_counterparty_exactly_one",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ConfirmationRequest",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "request_kind",
                    models.CharField(
                        choices=[
                            ("lend_request", "Lend request"),
                            ("borrow_request", "Borrow request"),
                            ("settle_request", "Settle request"),
                            ("remind", "Reminder"),
                        ],
                        max_length=16,
                    ),
                ),
                (
                    "amount",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Denormalized copy of the target amount, for display",
                        max_digits=14,
                    ),
                ),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                (
                    "state",
                    models.CharField(
                        choices=[("pending", "Pending"), ("confirmed", "Confirmed"), ("rejected", "Rejected")],
                        default="pending",
                        max_length=10,
                    ),
                ),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("resolved_at", models.DateTimeField(blank=True, null=True)),
                (
                    "recipient",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="confirmation_requests",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "initiator",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="sent_confirmation_requests",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "target_entry",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="confirmation_requests",
                        to="ledger.ledgerentry",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["recipient", "state"], name="ledger_conf_recipie_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="DebtPairLock",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "user_low",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "user_high",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(fields=("user_low", "user_high"), name="uniq_debt_pair_lock"),
                ],
            },
        ),
    ]
