from django.contrib import admin

from borrowings.models import Borrowing


@admin.register(Borrowing)
class BorrowingAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "book_title",
        "borrower_email",
        "borrowed_at",
        "due_at",
        "returned_at",
        "is_overdue",
    ]
    list_filter = ["returned_at", "due_at"]
    search_fields = ["user__email", "book__title", "book__author", "book__isbn"]
    list_select_related = ["book", "user"]

    # Borrowings change the book counters, so they are created and
    # returned through the API only.
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.display(description="Book Title")
    def book_title(self, obj):
        return obj.book.title

    @admin.display(description="Borrower Email")
    def borrower_email(self, obj):
        return obj.user.email

    @admin.display(boolean=True)
    def is_overdue(self, obj):
        return obj.is_overdue
