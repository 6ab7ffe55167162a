import django.contrib.postgres.search
import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Book",
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
                ("title", models.CharField(max_length=255)),
                ("author", models.CharField(max_length=255)),
                ("genre", models.CharField(max_length=100)),
                (
                    "isbn",
                    models.CharField(
                        max_length=13,
                        unique=True,
                        validators=[
                            django.core.validators.RegexValidator(
                                message="ISBN must be exactly 13 digits.",
                                regex="^\\d{13}$",
                            )
                        ],
                        verbose_name="ISBN",
                    ),
                ),
                (
                    "total_copies",
                    models.PositiveIntegerField(
                        default=1,
                        validators=[django.core.validators.MinValueValidator(1)],
                    ),
                ),
                ("available_copies", models.PositiveIntegerField(blank=True)),
                (
                    "search_vector",
                    django.contrib.postgres.search.SearchVectorField(
                        blank=True, editable=False, null=True
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["title", "author"],
                "indexes": [
                    models.Index(fields=["title"], name="book_title_idx"),
                    models.Index(fields=["author"], name="book_author_idx"),
                    models.Index(fields=["genre"], name="book_genre_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(total_copies__gte=1),
                        name="book_total_copies_positive",
                        violation_error_message="Total copies must be greater than 0.",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(available_copies__gte=0),
                        name="book_available_copies_non_negative",
                        violation_error_message="Available copies cannot be negative.",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            available_copies__lte=models.F("total_copies")
                        ),
                        name="book_available_copies_within_total",
                        violation_error_message="Available copies cannot exceed total copies.",
                    ),
                ],
            },
        ),
    ]
