"""
Declarative catalog of the record types the console manages.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class EntityConfig:
    """How one record type is searched, filtered, scoped and guarded."""
    name: str                          # plural, used in URLs ("licenses")
    singular: str                      # used in error codes ("license")
    table: str
    id_prefix: str
    search_fields: Tuple[str, ...]
    filter_fields: Tuple[str, ...]
    date_fields: Tuple[str, ...]
    default_sort_by: str
    default_sort_order: str
    view_capability: str
    edit_capability: str
    location_field: Optional[str] = None   # None: not subject to location scoping
    required_fields: Tuple[str, ...] = ()
    defaults: Dict[str, Any] = field(default_factory=dict)
    stats_groups: Dict[str, str] = field(default_factory=dict)

    @property
    def code(self) -> str:
        return self.singular.upper()

    @property
    def plural_code(self) -> str:
        return self.name.upper()

    @property
    def not_found_code(self) -> str:
        return f"{self.code}_NOT_FOUND"


LICENSES = EntityConfig(
    name="licenses",
    singular="license",
    table="licenses",
    id_prefix="lic",
    search_fields=("holderName", "licenseNumber", "idCard"),
    filter_fields=("status", "city", "licenseType", "onBlockchain"),
    date_fields=("issueDate", "expiryDate"),
    default_sort_by="issueDate",
    default_sort_order="desc",
    view_capability="can_view_licenses",
    edit_capability="can_edit_licenses",
    location_field="city",
    required_fields=("holderName", "idCard", "licenseType", "city", "issuePlace"),
    defaults={"status": "active", "violations": 0, "onBlockchain": False},
    stats_groups={"byStatus": "status", "byType": "licenseType", "byCity": "city"},
)

VEHICLES = EntityConfig(
    name="vehicles",
    singular="vehicle",
    table="vehicles",
    id_prefix="veh",
    search_fields=("plateNumber", "owner", "ownerPhone"),
    filter_fields=("status", "city", "vehicleType", "brand"),
    date_fields=("registrationDate", "lastInspection", "nextInspection"),
    default_sort_by="registrationDate",
    default_sort_order="desc",
    view_capability="can_view_vehicles",
    edit_capability="can_edit_vehicles",
    location_field="city",
    required_fields=("plateNumber", "owner", "vehicleType", "brand", "city"),
    defaults={"status": "pending", "onBlockchain": False},
    stats_groups={"byStatus": "status", "byType": "vehicleType", "byBrand": "brand", "byCity": "city"},
)

VIOLATIONS = EntityConfig(
    name="violations",
    singular="violation",
    table="violations",
    id_prefix="vio",
    search_fields=("violatorName", "licenseNumber", "plateNumber", "location"),
    filter_fields=("status", "city", "violationType"),
    date_fields=("date", "paymentDate"),
    default_sort_by="date",
    default_sort_order="desc",
    view_capability="can_view_violations",
    edit_capability="can_edit_violations",
    location_field="city",
    required_fields=("violatorName", "plateNumber", "violationType", "location", "city", "fine"),
    defaults={"status": "pending", "points": 0},
    stats_groups={"byStatus": "status", "byType": "violationType", "byCity": "city", "byOfficer": "officer"},
)

AUTHORITIES = EntityConfig(
    name="authorities",
    singular="authority",
    table="authorities",
    id_prefix="auth",
    search_fields=("name", "code", "email", "phone"),
    filter_fields=("status", "city", "type"),
    date_fields=("establishedDate", "createdAt", "updatedAt"),
    default_sort_by="name",
    default_sort_order="asc",
    view_capability="can_view_authorities",
    edit_capability="can_edit_authorities",
    location_field="city",
    required_fields=("name", "code", "type", "city", "address"),
    defaults={"status": "active"},
    stats_groups={"byStatus": "status", "byType": "type", "byCity": "city"},
)

NEWS = EntityConfig(
    name="news",
    singular="news",
    table="news",
    id_prefix="news",
    search_fields=("title", "summary", "author"),
    filter_fields=("status", "category"),
    date_fields=("publishDate",),
    default_sort_by="publishDate",
    default_sort_order="desc",
    view_capability="can_view_news",
    edit_capability="can_edit_news",
    required_fields=("title", "summary", "content", "category", "author"),
    defaults={"status": "draft", "views": 0, "featured": False, "tags": []},
    stats_groups={"byStatus": "status", "byCategory": "category"},
)

NOTIFICATIONS = EntityConfig(
    name="notifications",
    singular="notification",
    table="notifications",
    id_prefix="notif",
    search_fields=("title", "message"),
    filter_fields=("type", "read", "walletAddress"),
    date_fields=("date",),
    default_sort_by="date",
    default_sort_order="desc",
    view_capability="can_view_notifications",
    edit_capability="can_edit_notifications",
    required_fields=("title", "message", "type"),
    defaults={"read": False},
    stats_groups={"byType": "type", "byRead": "read"},
)

ENTITIES = {
    cfg.name: cfg
    for cfg in (LICENSES, VEHICLES, VIOLATIONS, AUTHORITIES, NEWS, NOTIFICATIONS)
}
