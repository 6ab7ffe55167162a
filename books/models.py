import re

from django.contrib.postgres.search import SearchVectorField
from django.core.validators import MinValueValidator, RegexValidator
from django.db import models

ISBN_LENGTH = 13

# Text fields that feed the search vector, highest weight first.
SEARCH_SOURCE_FIELDS = ("title", "author", "genre", "isbn")

validate_isbn = RegexValidator(
    regex=rf"^[0-9]{{{ISBN_LENGTH}}}$",
    message=f"ISBN must be exactly {ISBN_LENGTH} digits.",
)


def normalize_isbn(value):
    """Strip hyphens, spaces and anything else that is not an ASCII digit."""
    if value is None:
        return None
    return re.sub(r"[^0-9]", "", str(value))


class BookQuerySet(models.QuerySet):
    def available(self):
        return self.filter(available_copies__gt=0)


class Book(models.Model):
    title = models.CharField(max_length=255)
    author = models.CharField(max_length=255)
    genre = models.CharField(max_length=100)
    isbn = models.CharField(
        "ISBN", max_length=ISBN_LENGTH, unique=True, validators=[validate_isbn]
    )
    total_copies = models.PositiveIntegerField(
        default=1, validators=[MinValueValidator(1)]
    )
    available_copies = models.PositiveIntegerField(blank=True)
    search_vector = SearchVectorField(null=True, blank=True, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BookQuerySet.as_manager()

    class Meta:
        ordering = ["title", "author"]
        indexes = [
            models.Index(fields=["title"], name="book_title_idx"),
            models.Index(fields=["author"], name="book_author_idx"),
            models.Index(fields=["genre"], name="book_genre_idx"),
        ]
        constraints = [
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
                condition=models.Q(available_copies__lte=models.F("total_copies")),
                name="book_available_copies_within_total",
                violation_error_message="Available copies cannot exceed total copies.",
            ),
        ]

    def __str__(self):
        return f"{self.title} by {self.author}"

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._indexed_text = instance._search_source()
        return instance

    def refresh_from_db(self, *args, **kwargs):
        super().refresh_from_db(*args, **kwargs)
        self._indexed_text = self._search_source()

    def _search_source(self):
        # __dict__ lookup so deferred fields are not loaded here
        return {name: self.__dict__.get(name) for name in SEARCH_SOURCE_FIELDS}

    @property
    def search_source_changed(self):
        indexed = getattr(self, "_indexed_text", None)
        if self._state.adding or indexed is None:
            return True
        return indexed != self._search_source()

    @property
    def is_available(self):
        return self.available_copies > 0

    @property
    def borrowed_copies(self):
        return self.total_copies - self.available_copies

    def clean_fields(self, exclude=None):
        self.isbn = normalize_isbn(self.isbn)
        if self.available_copies in (None, ""):
            self.available_copies = self.total_copies
        super().clean_fields(exclude=exclude)

    def save(self, *args, **kwargs):
        """Save and recompute the search vector when its source text changed."""
        reindex = self.search_source_changed
        super().save(*args, **kwargs)

        if reindex:
            from books.search import refresh_search_vector

            refresh_search_vector(self)
        self._indexed_text = self._search_source()
