from rest_framework import permissions


class IsLibrarianOrReadOnly(permissions.BasePermission):
    """
    Only librarians can create/update/delete books.
    Any authenticated user can read the catalog.
    """

    def has_permission(self, request, view):
        if not (request.user and request.user.is_authenticated):
            return False
        if request.method in permissions.SAFE_METHODS:
            return True
        return request.user.is_librarian
