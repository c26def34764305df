"""
Project URL configuration.

Surfaces
--------
- `/api/profile-fields/<kind>/`: merged custom field schema (staff).
- `/api/users/`, `/api/users/<id>/profile/`, `/api/groups/<id>/profile/`,
  `/api/account/profile/`: endpoints carrying custom profile fields.
- `/api/schema/`, `/api/docs/`: OpenAPI schema & Swagger UI.
"""

from __future__ import annotations

from django.urls import path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

from accounts.views import AccountProfileView, GroupProfileView, UserCreateView, UserProfileView
from profiles.views import ProfileFieldsView

urlpatterns = [
    # OpenAPI / Docs
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),

    # Schema for form-rendering clients
    path("api/profile-fields/<str:kind>/", ProfileFieldsView.as_view(), name="profile-fields"),

    # Entities carrying custom profile fields
    path("api/users/", UserCreateView.as_view(), name="user-create"),
    path("api/users/<int:pk>/profile/", UserProfileView.as_view(), name="user-profile"),
    path("api/groups/<int:pk>/profile/", GroupProfileView.as_view(), name="group-profile"),
    path("api/account/profile/", AccountProfileView.as_view(), name="account-profile"),
]
