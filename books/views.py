from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from books import services
from books.models import Book
from books.permissions import IsLibrarianOrReadOnly
from books.search import DEFAULT_SUGGESTIONS, advanced_search, search_books, search_suggestions
from books.serializers import AdvancedSearchSerializer, BookSerializer, BookWriteSerializer
from lending_service.errors import ValidationError


def required_query(request):
    query = request.query_params.get("q", "").strip()
    if not query:
        raise ValidationError(
            "Missing required parameter: q", details={"q": ["This parameter is required."]}
        )
    return query


class BookViewSet(viewsets.ModelViewSet):
    permission_classes = [IsLibrarianOrReadOnly]

    def get_queryset(self):
        queryset = Book.objects.all()
        params = self.request.query_params

        for field in ("title", "author", "genre"):
            value = params.get(field)
            if value:
                queryset = queryset.filter(**{f"{field}__icontains": value})

        if params.get("available_only") == "true":
            queryset = queryset.available()

        return queryset

    def get_serializer_class(self):
        if self.action in ("create", "update", "partial_update"):
            return BookWriteSerializer
        return BookSerializer

    def validated_input(self, partial):
        serializer = BookWriteSerializer(data=self.request.data, partial=partial)
        if not serializer.is_valid():
            raise ValidationError(details=serializer.errors)
        return serializer.validated_data

    def create(self, request, *args, **kwargs):
        book = services.create_book(**self.validated_input(partial=False))
        return Response(BookSerializer(book).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop("partial", False)
        book = services.update_book(kwargs["pk"], **self.validated_input(partial=partial))
        return Response(BookSerializer(book).data)

    def destroy(self, request, *args, **kwargs):
        services.delete_book(kwargs["pk"])
        return Response(status=status.HTTP_204_NO_CONTENT)

    def paginated(self, books, **extra):
        page = self.paginate_queryset(books)
        response = self.get_paginated_response(BookSerializer(page, many=True).data)
        response.data.update(extra)
        return response

    @action(detail=False, methods=["get"])
    def search(self, request):
        """Ranked full-text search over title, author, genre and ISBN."""
        query = required_query(request)
        return self.paginated(search_books(query), query=query)

    @action(detail=False, methods=["get"])
    def suggestions(self, request):
        query = required_query(request)
        try:
            limit = int(request.query_params.get("limit", DEFAULT_SUGGESTIONS))
        except ValueError:
            raise ValidationError(details={"limit": ["A valid integer is required."]})

        return Response({"suggestions": search_suggestions(query, limit), "query": query})

    @action(detail=False, methods=["get"])
    def advanced_search(self, request):
        serializer = AdvancedSearchSerializer(data=request.query_params)
        if not serializer.is_valid():
            raise ValidationError(details=serializer.errors)
        filters = serializer.validated_data

        books = advanced_search(
            query=filters.get("q"),
            genre=filters.get("genre"),
            author=filters.get("author"),
            isbn=filters.get("isbn"),
            available_only=filters["available_only"],
        )
        return self.paginated(books, filters=dict(filters))
