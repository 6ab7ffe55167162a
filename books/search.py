"""
Full-text search over the book catalog.

Each book keeps a weighted search vector built from its title (weight A),
author (B), genre (C) and ISBN (D) with PostgreSQL's English text-search
configuration, which handles case folding, stop words and stemming. The
vector is recomputed from ``Book.save`` whenever one of those fields changes.

On databases without text-search support no vector is stored and searching
falls back to case-insensitive substring matching.
"""

import logging

from django.conf import settings
from django.contrib.postgres.search import SearchQuery, SearchRank, SearchVector
from django.db import DatabaseError, connections, router, transaction
from django.db.models import Case, F, IntegerField, Q, Value, When

from books.models import Book, normalize_isbn

logger = logging.getLogger(__name__)

SEARCH_CONFIG = "english"

FIELD_WEIGHTS = (
    ("title", "A"),
    ("author", "B"),
    ("genre", "C"),
    ("isbn", "D"),
)

DEFAULT_SUGGESTIONS = 5


def supports_full_text(using=None):
    alias = using or router.db_for_read(Book)
    return connections[alias].vendor == "postgresql"


def weighted_search_vector():
    vector = None
    for field, weight in FIELD_WEIGHTS:
        part = SearchVector(field, weight=weight, config=SEARCH_CONFIG)
        vector = part if vector is None else vector + part
    return vector


def refresh_search_vector(book):
    """
    Recompute the stored vector of one book inside the caller's transaction.

    Failures are logged and swallowed: the book write itself must succeed
    even when its search projection could not be updated.
    """
    using = book._state.db or router.db_for_write(Book)
    if not supports_full_text(using):
        return False

    try:
        with transaction.atomic(using=using):
            Book.objects.using(using).filter(pk=book.pk).update(
                search_vector=weighted_search_vector()
            )
    except DatabaseError as exc:
        logger.warning(f"Failed to update search vector for book {book.pk}: {exc}")
        return False
    return True


def rebuild_search_vectors(using=None):
    """Recompute every stored vector. Returns the number of books updated."""
    using = using or router.db_for_write(Book)
    if not supports_full_text(using):
        return 0
    return Book.objects.using(using).update(search_vector=weighted_search_vector())


def _isbn_fragment(query):
    # "978-0-596" matches stored digits; queries with letters are not ISBNs
    if any(char.isalpha() for char in query):
        return None
    return normalize_isbn(query) or None


def _field_match(field, query, documents):
    if field == "isbn":
        match = Q(isbn__contains=_isbn_fragment(query) or query)
    else:
        match = Q(**{f"{field}__icontains": query})
    if documents is not None:
        match |= Q(**{f"{field}_document": documents})
    return match


def search_books(query, queryset=None):
    """
    Books matching a free-text query, most relevant field first.

    A blank query matches nothing. Results are ordered by the best field that
    matched (title, author, genre, ISBN, then vector-only matches), then by
    text-search rank where available, then alphabetically by title.
    """
    queryset = Book.objects.all() if queryset is None else queryset
    query = (query or "").strip()
    if not query:
        return queryset.none()

    full_text = supports_full_text(queryset.db)
    search_query = None
    if full_text:
        search_query = SearchQuery(query, search_type="plain", config=SEARCH_CONFIG)
        queryset = queryset.annotate(
            **{
                f"{field}_document": SearchVector(field, config=SEARCH_CONFIG)
                for field, _ in FIELD_WEIGHTS
            }
        )

    field_matches = [
        _field_match(field, query, search_query) for field, _ in FIELD_WEIGHTS
    ]

    if full_text:
        matches = (
            Q(search_vector=search_query)
            | Q(title__icontains=query)
            | Q(author__icontains=query)
            | field_matches[3]
        )
    else:
        matches = Q()
        for field_match in field_matches:
            matches |= field_match

    relevance = Case(
        *[
            When(field_match, then=Value(position))
            for position, field_match in enumerate(field_matches)
        ],
        default=Value(len(field_matches)),
        output_field=IntegerField(),
    )
    queryset = queryset.filter(matches).annotate(relevance=relevance)

    if full_text:
        queryset = queryset.annotate(rank=SearchRank(F("search_vector"), search_query))
        return queryset.order_by("relevance", "-rank", "title", "pk")
    return queryset.order_by("relevance", "title", "pk")


def search_suggestions(query, limit=DEFAULT_SUGGESTIONS):
    """Up to ``limit`` "<title> by <author>" strings for titles starting with query."""
    query = (query or "").strip()
    if not query:
        return []

    limit = max(1, min(int(limit), settings.SEARCH_SUGGESTIONS_MAX))
    rows = (
        Book.objects.filter(title__istartswith=query)
        .order_by("title", "pk")
        .values_list("title", "author")[:limit]
    )
    return [f"{title} by {author}" for title, author in rows]


def advanced_search(query=None, genre=None, author=None, isbn=None, available_only=False):
    """Full-text search narrowed by exact filters, all combined with AND."""
    if query and query.strip():
        books = search_books(query)
    else:
        books = Book.objects.all()

    if genre:
        books = books.filter(genre__iexact=genre.strip())
    if author:
        books = books.filter(author__iexact=author.strip())
    if isbn:
        books = books.filter(isbn__contains=normalize_isbn(isbn))
    if available_only:
        books = books.available()
    return books
