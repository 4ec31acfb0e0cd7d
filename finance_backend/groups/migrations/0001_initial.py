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
    ]

    operations = [
        migrations.CreateModel(
            name="Group",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="created_groups",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={"ordering": ["-created_at"]},
        ),
        migrations.CreateModel(
            name="GroupMember",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("member_kind", models.CharField(choices=ROSTER_KINDS, max_length=8)),
                ("member_guest_name", models.CharField(blank=True, default="", max_length=150)),
                ("position", models.PositiveIntegerField(default=0)),
                ("joined_at", models.DateTimeField(auto_now_add=True)),
                (
                    "group",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="members",
                        to="groups.group",
                    ),
                ),
                (
                    "member_user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="group_memberships",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["position", "pk"],
                "constraints": [
                    models.CheckConstraint(condition=one_party("member"), name="group_member_exactly_one_party"),
                    models.UniqueConstraint(
                        condition=models.Q(("member_user__isnull", False)),
                        fields=("group", "member_user"),
                        name="uniq_group_member_user",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(("member_kind", "guest")),
                        fields=("group", "member_guest_name"),
                        name="uniq_group_member_guest",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="GroupExpense",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("payer_kind", models.CharField(choices=ROSTER_KINDS, max_length=8)),
                ("payer_guest_name", models.CharField(blank=True, default="", max_length=150)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=14)),
                ("description", models.CharField(max_length=255)),
                ("date", models.DateTimeField(default=django.utils.timezone.now)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "group",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="expenses",
                        to="groups.group",
                    ),
                ),
                (
                    "payer_user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="paid_group_expenses",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="recorded_group_expenses",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-date", "-created_at"],
                "indexes": [
                    models.Index(fields=["group", "date"], name="groups_expense_group_date_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount__gt", 0)),
                        name="group_expense_amount_positive",
                    ),
                    models.CheckConstraint(condition=one_party("payer"), name="group_expense_exactly_one_payer"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ExpenseSplit",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("member_kind", models.CharField(choices=ROSTER_KINDS, max_length=8)),
                ("member_guest_name", models.CharField(blank=True, default="", max_length=150)),
                ("share", models.DecimalField(decimal_places=2, max_digits=14)),
                ("position", models.PositiveIntegerField(default=0)),
                (
                    "expense",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="splits",
                        to="groups.groupexpense",
                    ),
                ),
                (
                    "member_user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="group_expense_splits",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["position", "pk"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("share__gte", 0)),
                        name="expense_split_share_non_negative",
                    ),
                    models.CheckConstraint(condition=one_party("member"), name="expense_split_exactly_one_member"),
                ],
            },
        ),
    ]
