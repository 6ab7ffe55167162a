from rest_framework import serializers

from books.serializers import BookSerializer
from borrowings.models import Borrowing


class BorrowingCreateSerializer(serializers.Serializer):
    book_id = serializers.IntegerField()
    due_at = serializers.DateTimeField(required=False, allow_null=True)


class BorrowingUpdateSerializer(serializers.Serializer):
    due_at = serializers.DateTimeField(required=False)
    returned_at = serializers.DateTimeField(required=False, allow_null=True)


class BorrowingDetailSerializer(serializers.ModelSerializer):
    """Borrowing with full book information and derived status."""

    book = BookSerializer(read_only=True)
    user_id = serializers.IntegerField(source="user.id", read_only=True)
    user_email = serializers.CharField(source="user.email", read_only=True)

    is_active = serializers.BooleanField(read_only=True)
    is_overdue = serializers.BooleanField(read_only=True)
    days_overdue = serializers.IntegerField(read_only=True)

    class Meta:
        model = Borrowing
        fields = [
            "id",
            "borrowed_at",
            "due_at",
            "returned_at",
            "book",
            "user_id",
            "user_email",
            "is_active",
            "is_overdue",
            "days_overdue",
        ]
        read_only_fields = fields


class BorrowingListSerializer(serializers.ModelSerializer):
    book_id = serializers.IntegerField(source="book.id", read_only=True)
    book_title = serializers.CharField(source="book.title", read_only=True)
    book_author = serializers.CharField(source="book.author", read_only=True)
    user_email = serializers.CharField(source="user.email", read_only=True)
    is_active = serializers.BooleanField(read_only=True)
    is_overdue = serializers.BooleanField(read_only=True)

    class Meta:
        model = Borrowing
        fields = [
            "id",
            "borrowed_at",
            "due_at",
            "returned_at",
            "book_id",
            "book_title",
            "book_author",
            "user_email",
            "is_active",
            "is_overdue",
        ]
        read_only_fields = fields
