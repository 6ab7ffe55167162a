from rest_framework import permissions


class IsOwnerOrLibrarian(permissions.BasePermission):
    """
    Members see and return their own borrowings.
    Librarians see everything and are the only ones who may edit or delete.
    """

    librarian_actions = ("update", "partial_update", "destroy")

    def has_permission(self, request, view):
        if not (request.user and request.user.is_authenticated):
            return False
        if view.action in self.librarian_actions:
            return request.user.is_librarian
        return True

    def has_object_permission(self, request, view, obj):
        return obj.user_id == request.user.id or request.user.is_librarian
