"""
Restaurant access scoping.

This module turns a caller's role and assigned restaurant into the restaurant
restriction applied to every analytics query of a request.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from delivery_insights.utils.logger import get_logger

# Initialize logger
logger = get_logger(__name__)

class Role(str, Enum):
    GM = "GM"
    ADMIN_PUSAT = "ADMIN_PUSAT"
    MANAGER = "MANAGER"
    ASISTEN_MANAGER = "ASISTEN_MANAGER"
    STAFF = "STAFF"

class ScopePolicy(str, Enum):
    # May read any restaurant; honours an explicit restaurant request
    ORGANIZATION = "organization"
    # Pinned to the caller's own restaurant; requests are ignored
    ASSIGNED_RESTAURANT = "assigned_restaurant"

# Role to scope policy mapping
ROLE_SCOPE_POLICIES: Dict[Role, ScopePolicy] = {
    Role.GM: ScopePolicy.ORGANIZATION,
    Role.ADMIN_PUSAT: ScopePolicy.ORGANIZATION,
    Role.MANAGER: ScopePolicy.ASSIGNED_RESTAURANT,
    Role.ASISTEN_MANAGER: ScopePolicy.ASSIGNED_RESTAURANT,
    Role.STAFF: ScopePolicy.ASSIGNED_RESTAURANT,
}

@dataclass(frozen=True)
class AccessScope:
    """
    Restaurant restriction for one request.

    ``restaurant_id`` of None with ``matches_nothing`` False means the whole
    organization. ``matches_nothing`` selects zero records.
    """
    restaurant_id: Optional[str] = None
    matches_nothing: bool = False

    @classmethod
    def organization(cls) -> "AccessScope":
        return cls()

    @classmethod
    def restaurant(cls, restaurant_id: str) -> "AccessScope":
        return cls(restaurant_id=restaurant_id)

    @classmethod
    def empty(cls) -> "AccessScope":
        return cls(matches_nothing=True)

    @property
    def is_organization_wide(self) -> bool:
        return self.restaurant_id is None and not self.matches_nothing

    def describe(self) -> str:
        if self.matches_nothing:
            return "none"
        return self.restaurant_id or "all"

def get_scope_policy(role: Optional[str]) -> ScopePolicy:
    """
    Get the scope policy for a role.

    Unrecognised or missing roles fall back to the most restrictive policy.

    Args:
        role: Role name

    Returns:
        Scope policy for the role
    """
    try:
        return ROLE_SCOPE_POLICIES[Role(role)]
    except ValueError:
        logger.warning(f"Unknown role {role!r}, applying assigned-restaurant scope")
        return ScopePolicy.ASSIGNED_RESTAURANT

def resolve_scope(
    caller_role: Optional[str],
    caller_restaurant_id: Optional[str],
    requested_restaurant_id: Optional[str] = None
) -> AccessScope:
    """
    Resolve the effective access scope for a caller.

    Args:
        caller_role: Role of the caller
        caller_restaurant_id: Restaurant the caller is assigned to, if any
        requested_restaurant_id: Restaurant explicitly requested by the caller

    Returns:
        AccessScope to apply to every query of the request
    """
    policy = get_scope_policy(caller_role)

    if policy is ScopePolicy.ORGANIZATION:
        if requested_restaurant_id:
            return AccessScope.restaurant(requested_restaurant_id)
        return AccessScope.organization()

    if requested_restaurant_id and requested_restaurant_id != caller_restaurant_id:
        logger.info(
            f"Ignoring restaurant override {requested_restaurant_id} for role {caller_role}"
        )

    if not caller_restaurant_id:
        return AccessScope.empty()

    return AccessScope.restaurant(caller_restaurant_id)
