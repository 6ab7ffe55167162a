import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("books", "0002_search_vector_index"),
    ]

    operations = [
        migrations.AlterField(
            model_name="book",
            name="isbn",
            field=models.CharField(
                max_length=13,
                unique=True,
                validators=[
                    django.core.validators.RegexValidator(
                        message="ISBN must be exactly 13 digits.",
                        regex="^[0-9]{13}$",
                    )
                ],
                verbose_name="ISBN",
            ),
        ),
    ]
