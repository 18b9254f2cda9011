"""
Role-Based Access Control – registry lookup and permission resolution.
"""

from typing import Dict, Iterable, Mapping, Optional

from traffic_console.config import DEFAULT_USER_CONFIGS, SCOPE_ALL, SCOPE_DISPLAY_NAMES
from traffic_console.models import CAPABILITY_FLAGS, Permission, UserConfig

SUPER_ADMIN = "super-admin"
REGIONAL_ADMIN = "regional-admin"
VIEWER = "viewer"

ROLES = (SUPER_ADMIN, REGIONAL_ADMIN, VIEWER)

ROLE_DISPLAY_NAMES = {
    SUPER_ADMIN: "Quản trị viên hệ thống",
    REGIONAL_ADMIN: "Quản trị viên khu vực",
    VIEWER: "Người xem",
}

_VIEWER_CAPABILITIES = frozenset({
    "can_view_dashboard",
    "can_view_licenses",
    "can_view_vehicles",
    "can_view_violations",
    "can_view_reports",
    "can_view_news",
    "can_view_notifications",
    "can_view_settings",
})

# Adding a role or a capability is an edit to this table only.
ROLE_CAPABILITIES = {
    SUPER_ADMIN: frozenset(CAPABILITY_FLAGS),
    REGIONAL_ADMIN: frozenset(CAPABILITY_FLAGS) - {"can_view_authorities", "can_edit_authorities"},
    VIEWER: _VIEWER_CAPABILITIES,
}

Registry = Mapping[str, UserConfig]


def normalize_identity(identity: Optional[str]) -> str:
    return (identity or "").strip().lower()


def build_registry(entries: Iterable) -> Dict[str, UserConfig]:
    """Index user configs (or plain dicts) by normalised wallet address."""
    registry: Dict[str, UserConfig] = {}
    for entry in entries:
        cfg = entry if isinstance(entry, UserConfig) else UserConfig(
            address=str(entry["address"]),
            role=str(entry["role"]).strip().lower(),
            location_scope=str(entry.get("location_scope") or SCOPE_ALL).strip().lower(),
            name=str(entry.get("name") or ""),
            organization=str(entry.get("organization") or ""),
        )
        registry[normalize_identity(cfg.address)] = cfg
    return registry


def default_registry() -> Dict[str, UserConfig]:
    return build_registry(DEFAULT_USER_CONFIGS)


def permissions_for(role: str, location_scope: str) -> Permission:
    """Map a role to its capability flags; unknown roles get the viewer set."""
    granted = ROLE_CAPABILITIES.get(role)
    if granted is None:
        role, granted = VIEWER, ROLE_CAPABILITIES[VIEWER]
    flags = {flag: flag in granted for flag in CAPABILITY_FLAGS}
    return Permission(**flags, location_scope=location_scope, role=role)


def lookup_user(identity: Optional[str], registry: Registry) -> Optional[UserConfig]:
    key = normalize_identity(identity)
    if not key:
        return None
    return registry.get(key)


def resolve_permission(identity: Optional[str], connected: bool, registry: Registry) -> Permission:
    """
    Resolve the session permission for a wallet identity.

    Anonymous callers and wallets absent from the registry both receive the
    viewer permission over all locations.
    """
    if not connected or not identity:
        return permissions_for(VIEWER, SCOPE_ALL)

    cfg = lookup_user(identity, registry)
    if cfg is None:
        return permissions_for(VIEWER, SCOPE_ALL)
    return permissions_for(cfg.role, cfg.location_scope)


def role_display_name(role: str) -> str:
    return ROLE_DISPLAY_NAMES.get(role, "Không xác định")


def scope_display_name(scope: str) -> str:
    return SCOPE_DISPLAY_NAMES.get(scope, "Không xác định")
