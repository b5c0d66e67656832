import django.core.serializers.json
from django.db import migrations, models

import snapshots.models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Snapshot",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("source_class", models.CharField(help_text="Stable type tag of the captured object (app_label.ModelName).", max_length=255)),
                (
                    "source_id",
                    models.CharField(
                        help_text="Identity of the captured object within its type. Composite identities use canonical JSON.",
                        max_length=255,
                    ),
                ),
                ("checksum", models.CharField(editable=False, help_text="MD5 of the canonical JSON form of data.", max_length=32)),
                (
                    "data",
                    snapshots.models.ChecksummedJSONField(
                        blank=True,
                        encoder=django.core.serializers.json.DjangoJSONEncoder,
                        help_text="Serialized state of the captured object.",
                    ),
                ),
                (
                    "metadata",
                    models.JSONField(
                        blank=True,
                        encoder=django.core.serializers.json.DjangoJSONEncoder,
                        help_text="Free-form capture context (e.g. serializer context used).",
                        null=True,
                    ),
                ),
                ("version", models.PositiveIntegerField(default=1, help_text="Reserved for format evolution. Not auto-incremented.")),
                ("create_time", models.DateTimeField(help_text="When the snapshot was captured. Orders history.")),
            ],
            options={
                "db_table": "entity_snapshot",
                "ordering": ["-create_time", "-id"],
                "indexes": [
                    models.Index(fields=["source_class", "source_id"], name="idx_snapshot_source"),
                    models.Index(fields=["create_time"], name="idx_snapshot_create_time"),
                ],
            },
        ),
    ]
