"""
Domain dataclasses used across the application.
"""

import math
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class UserConfig:
    """A registry entry: who a wallet address is and what it may see."""
    address: str
    role: str                  # "super-admin", "regional-admin" or "viewer"
    location_scope: str        # "all" or a key of config.REGION_NAMES
    name: str
    organization: str


@dataclass(frozen=True)
class Permission:
    """Capabilities resolved for one session."""
    can_view_dashboard: bool
    can_view_licenses: bool
    can_edit_licenses: bool
    can_view_vehicles: bool
    can_edit_vehicles: bool
    can_view_violations: bool
    can_edit_violations: bool
    can_view_reports: bool
    can_view_authorities: bool
    can_edit_authorities: bool
    can_view_news: bool
    can_edit_news: bool
    can_view_notifications: bool
    can_edit_notifications: bool
    can_view_trash: bool
    can_view_settings: bool
    location_scope: str
    role: str

    def allows(self, capability: str) -> bool:
        return capability in CAPABILITY_FLAGS and getattr(self, capability)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


CAPABILITY_FLAGS = tuple(f.name for f in fields(Permission) if f.name.startswith("can_"))


@dataclass
class QueryRequest:
    """Paging, sorting, search and filter parameters for one listing."""
    page: int = 1
    limit: int = 10
    sort_by: Optional[str] = None
    sort_order: str = "asc"    # "asc" or "desc"
    search: Optional[str] = None
    filters: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Pagination:
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.total else 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
        }


@dataclass
class QueryResult:
    """One page of records plus the pagination summary."""
    items: List[Any]
    pagination: Pagination

    def to_dict(self) -> Dict[str, Any]:
        return {"items": list(self.items), "pagination": self.pagination.to_dict()}


@dataclass(frozen=True)
class MenuItem:
    id: str
    label: str
