from __future__ import annotations

"""
User, group and account endpoints that carry custom profile fields.

Each endpoint merges a base request schema (see `profiles/schema/requests/`)
with the custom fields of the relevant entity kind, validates the request
through the merged DRF serializer, and writes core columns and profile values
inside one `transaction.atomic()` block so they commit or roll back together.

Endpoints
---------
- `POST /api/users/` (staff): create a user from `user/create` + user fields.
- `GET/PATCH /api/users/<id>/profile/`: staff and the user see every field,
  others only public ones; staff may update `user/edit-info` columns and
  custom fields together.
- `GET/PATCH /api/groups/<id>/profile/`: same for groups (`group/edit`: name).
- `GET/PATCH /api/account/profile/`: the current user's settings
  (`profile-settings` + user fields).
"""

from typing import Any, Dict, Optional, Tuple

from django.contrib.auth import get_user_model
from django.db import transaction
from django.shortcuts import get_object_or_404
from django.utils.translation import gettext_lazy as _
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import permissions, status
from rest_framework.exceptions import PermissionDenied
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from profiles import get_service
from profiles.types import EntityKind, VisibilityFilter
from profiles.validation import describe

User = get_user_model()

# User columns editable together with the custom profile.
ACCOUNT_COLUMNS = ("first_name", "last_name", "email")


def _user_payload(user, profile: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": user.id,
        "username": user.get_username(),
        "first_name": user.first_name,
        "last_name": user.last_name,
        "email": user.email or "",
        "profile": profile,
    }


def _conflict(detail, code: str) -> Response:
    return Response({"detail": detail, "code": code}, status=status.HTTP_400_BAD_REQUEST)


def _email_in_use(email: str, exclude_pk=None) -> bool:
    qs = User.objects.filter(email__iexact=email)
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    return qs.exists()


def _save_columns(entity, data: Dict[str, Any], names) -> None:
    """Copy validated core columns onto `entity` and save only those (null -> "")."""
    columns = {name: data[name] if data[name] is not None else "" for name in names if name in data}
    if not columns:
        return
    for name, value in columns.items():
        setattr(entity, name, value)
    entity.save(update_fields=list(columns))


# -----------------------------
# User creation
# -----------------------------
class UserCreateView(APIView):
    """
    Staff-only user creation with custom profile fields.

    - Password bounds come from `SITE_PASSWORD_MIN_LENGTH/MAX_LENGTH` through
      the service's validator overrides.
    - Without a password the account gets an unusable password (to be set
      later through a reset flow).
    """
    permission_classes = [permissions.IsAdminUser]

    @extend_schema(
        operation_id="users_create",
        summary="Create a user (core fields + custom profile fields)",
        responses={
            201: OpenApiResponse(description="Created user with profile values"),
            400: OpenApiResponse(description="Validation error or username/email in use"),
        },
    )
    def post(self, request: Request, *args, **kwargs) -> Response:
        service = get_service()
        data = service.validate(EntityKind.USER, request.data, base="user/create")

        if User.objects.filter(username=data["user_name"]).exists():
            return _conflict(_("A user with that username already exists."), "username_in_use")
        if _email_in_use(data["email"]):
            return _conflict(_("A user with that email already exists."), "email_in_use")

        with transaction.atomic():
            user = User(
                username=data["user_name"],
                email=data["email"],
                first_name=data.get("first_name") or "",
                last_name=data.get("last_name") or "",
            )
            if data.get("password"):
                user.set_password(data["password"])
            else:
                user.set_unusable_password()
            user.save()
            service.update_profile(user, data)

        return Response(_user_payload(user, service.profile(user)), status=status.HTTP_201_CREATED)


# -----------------------------
# Entity profiles (user / group)
# -----------------------------
class EntityProfileView(APIView):
    """
    Base view: read and update one entity's core columns and custom profile.

    Subclasses set `kind`, the base request schema merged with the custom
    fields on update, and the core `columns` that schema may change. The
    owning model comes from the attribute store so the kind -> model mapping
    lives in one place.
    """
    permission_classes = [permissions.IsAuthenticated]
    kind: EntityKind
    base_schema: Optional[str] = None
    columns: Tuple[str, ...] = ()

    def get_entity(self, pk):
        model = get_service().store.model_for(self.kind)
        return get_object_or_404(model, pk=pk)

    def can_view_private(self, request: Request, entity) -> bool:
        return bool(request.user.is_staff)

    def check_conflicts(self, entity, data: Dict[str, Any]) -> Optional[Response]:
        """Return a 400 response when a unique core column is already taken."""
        return None

    def get(self, request: Request, pk: int) -> Response:
        entity = self.get_entity(pk)
        visibility = (
            VisibilityFilter.ALL if self.can_view_private(request, entity) else VisibilityFilter.PUBLIC
        )
        profile = get_service().profile(entity, visibility)
        return Response({"id": entity.pk, "visibility": visibility.value, "profile": profile})

    def patch(self, request: Request, pk: int) -> Response:
        if not request.user.is_staff:
            raise PermissionDenied(_("Only staff can edit profiles."))
        entity = self.get_entity(pk)
        service = get_service()
        data = service.validate(self.kind, request.data, base=self.base_schema, partial=True)

        conflict = self.check_conflicts(entity, data)
        if conflict is not None:
            return conflict

        with transaction.atomic():
            _save_columns(entity, data, self.columns)
            service.update_profile(entity, data)
        profile = service.profile(entity, VisibilityFilter.ALL)
        return Response({"id": entity.pk, "visibility": VisibilityFilter.ALL.value, "profile": profile})


class UserProfileView(EntityProfileView):
    kind = EntityKind.USER
    base_schema = "user/edit-info"
    columns = ACCOUNT_COLUMNS

    def can_view_private(self, request: Request, entity) -> bool:
        return bool(request.user.is_staff or request.user.pk == entity.pk)

    def check_conflicts(self, entity, data: Dict[str, Any]) -> Optional[Response]:
        if data.get("email") and _email_in_use(data["email"], exclude_pk=entity.pk):
            return _conflict(_("A user with that email already exists."), "email_in_use")
        return None

    @extend_schema(operation_id="users_profile_retrieve", summary="Custom profile of a user")
    def get(self, request: Request, pk: int) -> Response:
        return super().get(request, pk)

    @extend_schema(
        operation_id="users_profile_update",
        summary="Update a user's details and custom profile (staff)",
        responses={
            200: OpenApiResponse(description="Updated profile"),
            400: OpenApiResponse(description="Validation error or email in use"),
        },
    )
    def patch(self, request: Request, pk: int) -> Response:
        return super().patch(request, pk)


class GroupProfileView(EntityProfileView):
    kind = EntityKind.GROUP
    base_schema = "group/edit"
    columns = ("name",)

    def check_conflicts(self, entity, data: Dict[str, Any]) -> Optional[Response]:
        if "name" in data and type(entity).objects.filter(name=data["name"]).exclude(pk=entity.pk).exists():
            return _conflict(_("A group with that name already exists."), "name_in_use")
        return None

    @extend_schema(operation_id="groups_profile_retrieve", summary="Custom profile of a group")
    def get(self, request: Request, pk: int) -> Response:
        return super().get(request, pk)

    @extend_schema(
        operation_id="groups_profile_update",
        summary="Update a group's name and custom profile (staff)",
        responses={
            200: OpenApiResponse(description="Updated profile"),
            400: OpenApiResponse(description="Validation error or name in use"),
        },
    )
    def patch(self, request: Request, pk: int) -> Response:
        return super().patch(request, pk)


# -----------------------------
# Account settings (current user)
# -----------------------------
class AccountProfileView(APIView):
    """
    The authenticated user's own settings: a few core columns plus every
    custom user field (private ones included).
    """
    permission_classes = [permissions.IsAuthenticated]
    base_schema = "profile-settings"

    def _payload(self, user) -> Dict[str, Any]:
        service = get_service()
        payload = _user_payload(user, service.profile(user, VisibilityFilter.ALL))
        payload["fields"] = describe(service.fields_schema(EntityKind.USER, self.base_schema))
        return payload

    @extend_schema(
        operation_id="account_profile_retrieve",
        summary="Current user's account settings and custom profile",
        responses={200: OpenApiResponse(description="User, profile values and field descriptors")},
    )
    def get(self, request: Request, *args, **kwargs) -> Response:
        return Response(self._payload(request.user))

    @extend_schema(
        operation_id="account_profile_update",
        summary="Update current user's account settings and custom profile",
        responses={
            200: OpenApiResponse(description="Updated settings"),
            400: OpenApiResponse(description="Validation error or email in use"),
        },
    )
    def patch(self, request: Request, *args, **kwargs) -> Response:
        service = get_service()
        data = service.validate(EntityKind.USER, request.data, base=self.base_schema, partial=True)

        user = request.user
        if data.get("email") and _email_in_use(data["email"], exclude_pk=user.pk):
            return _conflict(_("A user with that email already exists."), "email_in_use")

        with transaction.atomic():
            _save_columns(user, data, ACCOUNT_COLUMNS)
            service.update_profile(user, data)

        return Response(self._payload(user))
