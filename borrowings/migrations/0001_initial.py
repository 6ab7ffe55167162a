import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("books", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Borrowing",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("borrowed_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("due_at", models.DateTimeField()),
                ("returned_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "book",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="borrowings",
                        to="books.book",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="borrowings",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Borrowing",
                "verbose_name_plural": "Borrowings",
                "ordering": ["-borrowed_at", "-id"],
                "indexes": [
                    models.Index(fields=["due_at"], name="borrowing_due_at_idx"),
                    models.Index(fields=["returned_at"], name="borrowing_returned_at_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(due_at__gt=models.F("borrowed_at")),
                        name="borrowing_due_after_borrowed",
                        violation_error_message="Due date must be after the borrow date.",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(returned_at__isnull=True)
                        | models.Q(returned_at__gte=models.F("borrowed_at")),
                        name="borrowing_returned_after_borrowed",
                        violation_error_message="Return date cannot be before the borrow date.",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(returned_at__isnull=True),
                        fields=("user", "book"),
                        name="borrowing_one_active_per_user_book",
                    ),
                ],
            },
        ),
    ]
