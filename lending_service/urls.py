from django.contrib import admin
from django.urls import path, include

from borrowings.views import DashboardView
from lending_service.views import HealthView

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/health/", HealthView.as_view(), name="health"),
    path("api/books/", include("books.urls", namespace="books")),
    path("api/borrowings/", include("borrowings.urls", namespace="borrowings")),
    path("api/dashboard/", DashboardView.as_view(), name="dashboard"),
    path("api/users/", include("users.urls", namespace="users")),
]
