from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("ledger", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="ledgerentry",
            name="due_date",
            field=models.DateField(
                blank=True,
                help_text="Optional repayment date (guest and dummy-contact debts only)",
                null=True,
            ),
        ),
    ]
