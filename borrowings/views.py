from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from borrowings import queries, services
from borrowings.models import Borrowing
from borrowings.permissions import IsOwnerOrLibrarian
from borrowings.serializers import (
    BorrowingCreateSerializer,
    BorrowingDetailSerializer,
    BorrowingListSerializer,
    BorrowingUpdateSerializer,
)
from lending_service.errors import ValidationError
from notifications.telegram import format_new_borrowing, send_telegram_message


def validated(serializer_class, data, partial=False):
    serializer = serializer_class(data=data, partial=partial)
    if not serializer.is_valid():
        raise ValidationError(details=serializer.errors)
    return serializer.validated_data


class BorrowingViewSet(viewsets.ModelViewSet):
    permission_classes = [IsAuthenticated, IsOwnerOrLibrarian]

    def get_queryset(self):
        queryset = Borrowing.objects.select_related("book", "user")
        params = self.request.query_params

        if not self.request.user.is_librarian:
            queryset = queryset.filter(user=self.request.user)
        else:
            user_id = params.get("user_id")
            if user_id:
                try:
                    queryset = queryset.filter(user_id=int(user_id))
                except (ValueError, TypeError):
                    queryset = queryset.none()

        is_active = params.get("is_active")
        if is_active == "true":
            queryset = queryset.active()
        elif is_active == "false":
            queryset = queryset.returned()

        return queryset.order_by("-id")

    def get_serializer_class(self):
        if self.action == "create":
            return BorrowingCreateSerializer
        if self.action in ("update", "partial_update"):
            return BorrowingUpdateSerializer
        if self.action == "list":
            return BorrowingListSerializer
        return BorrowingDetailSerializer

    def create(self, request, *args, **kwargs):
        data = validated(BorrowingCreateSerializer, request.data)
        borrowing = services.borrow_book(
            request.user, data["book_id"], due_at=data.get("due_at")
        )

        # Notification failures never undo a borrowing
        send_telegram_message(format_new_borrowing(borrowing))

        return Response(
            BorrowingDetailSerializer(borrowing).data, status=status.HTTP_201_CREATED
        )

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop("partial", False)
        self.get_object()
        data = validated(BorrowingUpdateSerializer, request.data, partial=partial)
        borrowing = services.update_borrowing(kwargs["pk"], **data)
        return Response(BorrowingDetailSerializer(borrowing).data)

    def destroy(self, request, *args, **kwargs):
        self.get_object()
        services.delete_borrowing(kwargs["pk"])
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"])
    def return_book(self, request, pk=None):
        """Return the borrowed copy. Owners and librarians only."""
        self.get_object()
        borrowing = services.return_borrowing(pk)
        return Response(BorrowingDetailSerializer(borrowing).data, status=status.HTTP_200_OK)


class DashboardView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        if request.user.is_librarian:
            return Response(queries.librarian_dashboard())
        return Response(queries.member_dashboard(request.user))
