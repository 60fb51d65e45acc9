from typing import List, Set

from fastapi import Depends, HTTPException, status

from souqote.users import schemas as user_schemas
from souqote.users.auth import get_current_user


def role_required(allowed_roles: List[str]):
    allowed_set: Set[str] = set(r.strip().lower() for r in (allowed_roles or []))

    def wrapper(current_user: user_schemas.CurrentUser = Depends(get_current_user)):
        user_type = (current_user.user_type or "").strip().lower()

        # Admin bypass
        if user_type == "admin":
            return current_user

        if user_type not in allowed_set:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions"
            )

        return current_user

    return wrapper


def permissions_for(user) -> user_schemas.PermissionsOut:
    if user is None:
        return user_schemas.PermissionsOut()

    is_buyer = user.user_type == "buyer"
    is_vendor = user.user_type == "vendor"
    is_admin = user.user_type == "admin"

    return user_schemas.PermissionsOut(
        # Buyer-only
        can_post_rfq=is_buyer,
        can_view_my_rfqs=is_buyer,
        # Vendor-only
        can_submit_quotes=is_vendor,
        can_view_my_quotes=is_vendor,
        can_browse_rfqs=is_vendor,
        # Admin
        can_view_admin=is_admin,
        can_manage_users=is_admin,
        can_manage_rfqs=is_admin,
        can_manage_categories=is_admin,
        can_view_all_quotes=is_admin,
        can_view_all_rfqs=is_admin,
        # Any signed-in user
        can_edit_profile=True,
        can_view_messages=True,
    )
