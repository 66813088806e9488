"""
Core ViewSets - base classes with permission enforcement and access logging.

USAGE:
    from core.viewsets import SecureModelViewSet

    class BidViewSet(SecureModelViewSet):
        queryset = Bid.objects.all()
        serializer_class = BidSerializer

        action_permissions = {
            'create': [permissions.IsAuthenticated, IsContractor],
        }
"""

import logging
from typing import Dict, List, Type

from rest_framework import permissions, viewsets
from rest_framework.request import Request

from core.permissions import is_platform_admin

logger = logging.getLogger('security.viewsets')


class SecureViewSetMixin:
    """
    Per-action permissions and API access logging.

    - action_permissions maps an action name to permission classes and
      overrides permission_classes for that action.
    - enable_audit_logging logs every request at INFO level.
    """

    permission_classes = [permissions.IsAuthenticated]

    action_permissions: Dict[str, List[Type[permissions.BasePermission]]] = {}

    enable_audit_logging: bool = True

    def get_permissions(self) -> List[permissions.BasePermission]:
        if self.action in self.action_permissions:
            return [perm() for perm in self.action_permissions[self.action]]
        return super().get_permissions()

    def initial(self, request: Request, *args, **kwargs) -> None:
        super().initial(request, *args, **kwargs)
        if self.enable_audit_logging:
            self._log_access(request)

    def _log_access(self, request: Request) -> None:
        """Log API access for security auditing."""
        user_id = request.user.id if request.user.is_authenticated else None
        logger.info(
            f"API_ACCESS: user={user_id} "
            f"view={self.__class__.__name__} action={self.action} "
            f"method={request.method} path={request.path}"
        )

    @property
    def is_admin_request(self) -> bool:
        return is_platform_admin(self.request.user)


class SecureModelViewSet(SecureViewSetMixin, viewsets.ModelViewSet):
    """ModelViewSet with per-action permissions and access logging."""


class SecureGenericViewSet(SecureViewSetMixin, viewsets.GenericViewSet):
    """GenericViewSet for action-only endpoints."""


class SecureReadOnlyViewSet(SecureViewSetMixin, viewsets.ReadOnlyModelViewSet):
    """Read-only list/retrieve with access logging."""
