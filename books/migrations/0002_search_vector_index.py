from django.db import migrations

INDEX_NAME = "book_search_vector_gin"


def create_search_index(apps, schema_editor):
    # GIN indexes and tsvector exist on PostgreSQL only
    if schema_editor.connection.vendor != "postgresql":
        return

    from books.search import weighted_search_vector

    schema_editor.execute(
        f"CREATE INDEX IF NOT EXISTS {INDEX_NAME} "
        f"ON books_book USING gin (search_vector)"
    )
    Book = apps.get_model("books", "Book")
    Book.objects.update(search_vector=weighted_search_vector())


def drop_search_index(apps, schema_editor):
    if schema_editor.connection.vendor != "postgresql":
        return
    schema_editor.execute(f"DROP INDEX IF EXISTS {INDEX_NAME}")


class Migration(migrations.Migration):

    dependencies = [
        ("books", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(create_search_index, drop_search_index),
    ]
