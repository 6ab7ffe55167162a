from rest_framework import serializers

from books.models import Book


class BookSerializer(serializers.ModelSerializer):
    borrowed_copies = serializers.IntegerField(read_only=True)
    is_available = serializers.BooleanField(read_only=True)

    class Meta:
        model = Book
        fields = [
            "id",
            "title",
            "author",
            "genre",
            "isbn",
            "total_copies",
            "available_copies",
            "borrowed_copies",
            "is_available",
        ]
        read_only_fields = fields


class BookWriteSerializer(serializers.Serializer):
    """
    Input shape for create/update. Only types are checked here; presence,
    lengths, ISBN format and copy counts are validated by books.services so
    every violated rule is reported together.
    """

    title = serializers.CharField(required=False, allow_blank=True, trim_whitespace=True)
    author = serializers.CharField(required=False, allow_blank=True, trim_whitespace=True)
    genre = serializers.CharField(required=False, allow_blank=True, trim_whitespace=True)
    isbn = serializers.CharField(required=False, allow_blank=True)
    total_copies = serializers.IntegerField(required=False)
    available_copies = serializers.IntegerField(required=False)


class AdvancedSearchSerializer(serializers.Serializer):
    q = serializers.CharField(required=False, allow_blank=True)
    genre = serializers.CharField(required=False, allow_blank=True)
    author = serializers.CharField(required=False, allow_blank=True)
    isbn = serializers.CharField(required=False, allow_blank=True)
    available_only = serializers.BooleanField(required=False, default=False)
