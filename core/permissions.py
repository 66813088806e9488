"""
Core Permissions - role-based access for the marketplace API.

Roles live on the user model (accounts.User.role):
- client: requests services, accepts bids, funds escrow
- contractor: bids, buys lead access, chats with customers
- admin / superadmin: platform staff
"""

import logging
from typing import Any

from rest_framework import permissions
from rest_framework.request import Request
from rest_framework.views import APIView

logger = logging.getLogger('security.permissions')

ADMIN_ROLES = frozenset({'admin', 'superadmin'})


def is_platform_admin(user) -> bool:
    """True for admin/superadmin roles and Django staff."""
    if not user or not user.is_authenticated:
        return False
    return user.is_staff or user.is_superuser or getattr(user, 'role', None) in ADMIN_ROLES


class IsContractor(permissions.BasePermission):
    """Allow only users with the contractor role."""

    message = 'Only contractors can perform this action.'

    def has_permission(self, request: Request, view: APIView) -> bool:
        user = request.user
        allowed = bool(user and user.is_authenticated and getattr(user, 'role', None) == 'contractor')
        if not allowed and user and user.is_authenticated:
            logger.warning(
                f"PERMISSION_DENIED: user={user.id} view={view.__class__.__name__} "
                f"required_role=contractor"
            )
        return allowed


class IsOwnerOrPlatformAdmin(permissions.BasePermission):
    """
    Object-level check against an owner attribute.

    Views set `owner_field` (default 'user'); dotted paths are followed.
    """

    def has_object_permission(self, request: Request, view: APIView, obj: Any) -> bool:
        if is_platform_admin(request.user):
            return True

        owner = obj
        for part in getattr(view, 'owner_field', 'user').split('.'):
            owner = getattr(owner, part, None)
            if owner is None:
                return False
        return owner == request.user
