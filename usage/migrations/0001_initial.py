import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="UsageLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(db_index=True, max_length=64)),
                ("cost", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="usage_logs", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "db_table": "usage_logs",
                "indexes": [
                    models.Index(fields=["user", "action", "created_at"], name="usage_user_action_idx"),
                    models.Index(fields=["user", "created_at"], name="usage_user_created_idx"),
                ],
            },
        ),
    ]
