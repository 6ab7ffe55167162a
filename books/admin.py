from django.contrib import admin

from books import services
from books.models import Book

# Fields an admin may edit on an existing book; copy counts are left to the ledger
ADMIN_EDITABLE_FIELDS = ("title", "author", "genre", "isbn")


@admin.register(Book)
class BookAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "title",
        "author",
        "genre",
        "isbn",
        "total_copies",
        "available_copies",
    ]
    list_filter = ["genre"]
    search_fields = ["title", "author", "isbn"]
    readonly_fields = ["created_at", "updated_at"]

    def get_readonly_fields(self, request, obj=None):
        if obj is None:
            return self.readonly_fields
        # Copy counts of an existing book move through the API and borrowings only
        return ["total_copies", "available_copies", *self.readonly_fields]

    def save_model(self, request, obj, form, change):
        if not change:
            super().save_model(request, obj, form, change)
            return

        # obj holds copy counts from when the form loaded; only catalog fields are written
        services.update_book(
            obj.pk, **{name: getattr(obj, name) for name in ADMIN_EDITABLE_FIELDS}
        )
        obj.refresh_from_db()
