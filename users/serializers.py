from django.contrib.auth import get_user_model
from rest_framework import serializers


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = get_user_model()
        fields = ("id", "email", "password", "first_name", "last_name", "role", "is_staff")
        read_only_fields = ("id", "role", "is_staff")
        extra_kwargs = {"password": {"write_only": True, "min_length": 5}}

    def create(self, validated_data):
        """Create a member with an encrypted password."""
        return get_user_model().objects.create_user(**validated_data)

    def update(self, instance, validated_data):
        password = validated_data.pop("password", None)
        user = super().update(instance, validated_data)
        if password:
            user.set_password(password)
            user.save()
        return user


class UserListSerializer(serializers.ModelSerializer):
    """Member overview for librarians, with borrowing counts annotated by the view."""

    full_name = serializers.CharField(read_only=True)
    is_librarian = serializers.BooleanField(read_only=True)
    active_borrowings_count = serializers.IntegerField(read_only=True)
    overdue_borrowings_count = serializers.IntegerField(read_only=True)
    total_borrowings_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = get_user_model()
        fields = (
            "id",
            "email",
            "full_name",
            "role",
            "is_librarian",
            "date_joined",
            "active_borrowings_count",
            "overdue_borrowings_count",
            "total_borrowings_count",
        )
        read_only_fields = fields
