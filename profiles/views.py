"""
Read-only endpoint exposing merged field schemas to form-rendering clients.

- `GET /api/profile-fields/<kind>/` returns the custom fields of `kind`.
- `?base=<operation>` merges them onto a base request schema first
  (e.g. `user/create`), including configured validator overrides.

Staff only: schemas reveal private field names.
"""

from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import permissions
from rest_framework.exceptions import NotFound
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from . import get_service
from .exceptions import SchemaLoadError
from .types import EntityKind
from .validation import describe


class ProfileFieldsView(APIView):
    permission_classes = [permissions.IsAdminUser]

    @extend_schema(
        operation_id="profile_fields_schema",
        summary="Merged custom field schema for an entity kind",
        parameters=[
            OpenApiParameter(
                name="base",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Base request schema to merge onto, e.g. `user/create`.",
            ),
        ],
        responses={
            200: OpenApiResponse(description="Kind, base name and ordered field descriptors"),
            404: OpenApiResponse(description="Unknown kind or base schema"),
        },
    )
    def get(self, request: Request, kind: str) -> Response:
        if kind not in EntityKind.values:
            raise NotFound(f"Unknown entity kind '{kind}'.")
        service = get_service()
        base_name = request.query_params.get("base") or None
        if base_name:
            try:
                service.base_schemas.path_for(base_name)
            except SchemaLoadError as exc:
                raise NotFound(str(exc)) from exc
        schema = service.fields_schema(kind, base_name)
        return Response({"kind": kind, "base": base_name, "fields": describe(schema)})
