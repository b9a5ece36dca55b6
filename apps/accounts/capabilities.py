"""
Capability checks called by the canteen services.

Services receive an already authenticated actor. Whether that actor may
perform an action depends only on its role and, for shop staff, the shop it
is attached to. Keeping those rules here lets the DRF permission classes and
the service layer share one definition.
"""
from apps.common.exceptions import PermissionDeniedError

from .models import SHOP_STAFF_ROLES, UserRole


def has_role(actor, *roles):
    return bool(actor and actor.is_active and actor.role in roles)


def require_role(actor, *roles):
    """
    Raise PermissionDeniedError unless the actor holds one of the roles.

    Superadmins pass every role check.
    """
    if has_role(actor, UserRole.SUPERADMIN, *roles):
        return actor
    raise PermissionDeniedError(
        'This action requires one of the roles: ' + ', '.join(str(r) for r in roles),
        required_roles=[str(r) for r in roles],
    )


def can_manage_shop(actor, shop_id):
    if has_role(actor, UserRole.SUPERADMIN):
        return True
    return (
        has_role(actor, *SHOP_STAFF_ROLES)
        and actor.shop_id is not None
        and str(actor.shop_id) == str(shop_id)
    )


def require_shop_staff(actor, shop_id):
    """Raise PermissionDeniedError unless the actor works at the given shop."""
    if not can_manage_shop(actor, shop_id):
        raise PermissionDeniedError('You can only manage orders of your own shop.', shop_id=str(shop_id))
    return actor
