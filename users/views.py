from django.contrib.auth import get_user_model
from django.db.models import Count, Q
from django.utils import timezone
from rest_framework import generics, viewsets
from rest_framework.permissions import AllowAny, IsAuthenticated

from users.permissions import IsLibrarian
from users.serializers import UserListSerializer, UserSerializer


class CreateUserView(generics.CreateAPIView):
    serializer_class = UserSerializer
    authentication_classes = ()
    permission_classes = (AllowAny,)


class ManageUserView(generics.RetrieveUpdateAPIView):
    serializer_class = UserSerializer
    permission_classes = (IsAuthenticated,)

    def get_object(self):
        return self.request.user


class UserViewSet(viewsets.ReadOnlyModelViewSet):
    """Librarians browse members with their borrowing counts."""

    serializer_class = UserListSerializer
    permission_classes = (IsLibrarian,)

    def get_queryset(self):
        active = Q(borrowings__returned_at__isnull=True)
        queryset = get_user_model().objects.annotate(
            total_borrowings_count=Count("borrowings"),
            active_borrowings_count=Count("borrowings", filter=active),
            overdue_borrowings_count=Count(
                "borrowings", filter=active & Q(borrowings__due_at__lt=timezone.now())
            ),
        )

        role = self.request.query_params.get("role")
        if role in get_user_model().Role.values:
            queryset = queryset.filter(role=role)

        search = self.request.query_params.get("search", "").strip()
        if search:
            queryset = queryset.filter(email__icontains=search)

        return queryset.order_by("role", "email")
