"""
Permission classes shared by the creator-facing APIs.

- IsCreator: authenticated user with a creator account
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework import permissions

if TYPE_CHECKING:
    from rest_framework.request import Request
    from rest_framework.views import APIView


class IsCreator(permissions.BasePermission):
    """Allows access only to creator accounts."""

    message = "This endpoint is available to creators only."

    def has_permission(self, request: Request, view: APIView) -> bool:
        return bool(request.user and request.user.is_authenticated and request.user.is_creator)
