# Generated manually for in-flight stage reservations on ClaimTimeline

from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("cashbus", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="claimtimeline",
            name="sending_stage",
            field=models.CharField(
                blank=True,
                help_text="Stage a run has reserved and is currently sending",
                max_length=30,
            ),
        ),
        migrations.AddField(
            model_name="claimtimeline",
            name="sending_started_at",
            field=models.DateTimeField(blank=True, null=True),
        ),
    ]
