"""
DRF permission classes built on the role capabilities.

Usage:
    @api_view(['POST'])
    @permission_classes([IsAuthenticated, IsAccountant])
    def credit(request):
        ...
"""
from rest_framework.permissions import BasePermission

from .capabilities import has_role
from .models import SHOP_STAFF_ROLES, UserRole


class RolePermission(BasePermission):
    """Allow users holding one of `roles`; superadmins always pass."""

    roles = ()
    message = 'You do not have permission to perform this action.'

    def has_permission(self, request, view):
        return has_role(request.user, UserRole.SUPERADMIN, *self.roles)


class IsStudent(RolePermission):
    roles = (UserRole.STUDENT,)
    message = 'Only students can perform this action.'


class IsShopStaff(RolePermission):
    """Owner or captain attached to a shop."""

    roles = SHOP_STAFF_ROLES
    message = 'Only shop staff can perform this action.'

    def has_permission(self, request, view):
        if not super().has_permission(request, view):
            return False
        return request.user.role == UserRole.SUPERADMIN or request.user.shop_id is not None


class IsShopOwner(RolePermission):
    roles = (UserRole.OWNER,)
    message = 'Only shop owners can perform this action.'


class IsAccountant(RolePermission):
    roles = (UserRole.ACCOUNTANT,)
    message = 'Only accountants can perform this action.'


class IsSuperAdmin(RolePermission):
    roles = (UserRole.SUPERADMIN,)
    message = 'Only administrators can perform this action.'
