import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


def one_party(prefix):
    return models.Q(
        **{
            f"{prefix}_kind": "user",
            f"{prefix}_user__isnull": False,
            f"{prefix}_guest_name": "",
        }
    ) | (
        models.Q(**{f"{prefix}_kind": "guest", f"{prefix}_user__isnull": True})
        & ~models.Q(**{f"{prefix}_guest_name": ""})
    )


ROSTER_KINDS = [("user", "Registered user"), ("guest", "Guest")]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("groups", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Settlement",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("payer_kind", models.CharField(choices=ROSTER_KINDS, max_length=8)),
                ("payer_guest_name", models.CharField(blank=True, default="", max_length=150)),
                ("payee_kind", models.CharField(choices=ROSTER_KINDS, max_length=8)),
                ("payee_guest_name", models.CharField(blank=True, default="", max_length=150)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=14)),
                ("date", models.DateTimeField(default=django.utils.timezone.now)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "group",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="settlements",
                        to="groups.group",
                    ),
                ),
                (
                    "payer_user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="settlements_paid",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "payee_user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="settlements_received",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "recorded_by",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="recorded_settlements",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-date", "-created_at"],
                "indexes": [
                    models.Index(fields=["group", "date"], name="settle_group_date_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount__gt", 0)),
                        name="settlement_amount_positive",
                    ),
                    models.CheckConstraint(condition=one_party("payer"), name="settlement_exactly_one_payer"),
                    models.CheckConstraint(condition=one_party("payee"), name="settlement_exactly_one_payee"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ContactAlias",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("display_name", models.CharField(max_length=150)),
                ("confirmed", models.BooleanField(default=False)),
                ("confirmed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="contact_aliases",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="aliased_as",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["display_name"],
                "constraints": [
                    models.UniqueConstraint(fields=("owner", "display_name"), name="uniq_contact_alias_per_owner"),
                ],
            },
        ),
    ]
