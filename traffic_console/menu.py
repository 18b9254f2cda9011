"""
Navigation gating – which console sections a permission can reach.
"""

from typing import List, Sequence

from traffic_console.models import MenuItem, Permission

MENU_ITEMS = [
    MenuItem("dashboard", "Dashboard"),
    MenuItem("licenses", "Driver licenses"),
    MenuItem("vehicles", "Vehicles"),
    MenuItem("violations", "Violations"),
    MenuItem("reports", "Reports & analytics"),
    MenuItem("authorities", "Traffic authorities"),
    MenuItem("news", "News"),
    MenuItem("notifications-mgmt", "Notifications"),
    MenuItem("trash", "Trash"),
    MenuItem("settings", "Settings"),
]

MENU_CAPABILITIES = {
    "dashboard": "can_view_dashboard",
    "licenses": "can_view_licenses",
    "vehicles": "can_view_vehicles",
    "violations": "can_view_violations",
    "reports": "can_view_reports",
    "authorities": "can_view_authorities",
    "news": "can_view_news",
    "notifications-mgmt": "can_view_notifications",
    "trash": "can_view_trash",
    "settings": "can_view_settings",
}


def can_access_menu_item(permission: Permission, menu_id: str) -> bool:
    """Unmapped menu ids are denied."""
    capability = MENU_CAPABILITIES.get(menu_id)
    if capability is None:
        return False
    return permission.allows(capability)


def visible_menu(permission: Permission, items: Sequence[MenuItem] = MENU_ITEMS) -> List[MenuItem]:
    return [item for item in items if can_access_menu_item(permission, item.id)]
