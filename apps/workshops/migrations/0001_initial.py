import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("users", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Workshop",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=100)),
                ("description", models.TextField(blank=True, default="")),
                (
                    "category",
                    models.CharField(
                        choices=[("cultural", "Cultural"), ("sports", "Sports"), ("civic", "Civic")],
                        max_length=20,
                    ),
                ),
                (
                    "max_capacity",
                    models.PositiveIntegerField(default=25, validators=[django.core.validators.MinValueValidator(1)]),
                ),
                ("schedule", models.CharField(blank=True, default="", max_length=100)),
                ("location", models.CharField(blank=True, default="", max_length=100)),
                ("is_active", models.BooleanField(default=True)),
                (
                    "instructor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        to="users.instructor",
                    ),
                ),
            ],
            options={
                "db_table": "workshop",
                "ordering": ("category", "name"),
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("max_capacity__gt", 0)), name="workshop_max_capacity_positive"
                    )
                ],
            },
        ),
    ]
