"""
Entity operations – every call returns exactly one response envelope.

Listing runs the location scope filter first and hands the scoped snapshot
to the query engine. Mutating operations check the edit capability and the
caller's location scope before touching the repository.
"""

import copy
import sys
import traceback
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

import pandas as pd

from traffic_console.config import FEATURED_NEWS_LIMIT
from traffic_console.entities import ENTITIES, EntityConfig
from traffic_console.envelope import (
    AccessDeniedError,
    ConflictError,
    ConsoleError,
    NotFoundError,
    ValidationError,
    error_from_exception,
    error_response,
    success_response,
    utc_timestamp,
)
from traffic_console.models import Permission
from traffic_console.query import parse_query_request, run_query, stringify
from traffic_console.rbac import normalize_identity
from traffic_console.repository import InMemoryRepository
from traffic_console.scope import filter_by_scope, in_scope


def _guarded(code: str, message: str, operation: Callable[..., Dict[str, Any]], *args) -> Dict[str, Any]:
    """Run *operation*, converting raised errors into error envelopes."""
    try:
        return operation(*args)
    except ConsoleError as e:
        return error_from_exception(e)
    except Exception as e:
        print(f"[ERROR] {code}: {e}", file=sys.stderr)
        traceback.print_exc()
        return error_response(code, message, str(e))


def _value_counts(frame: pd.DataFrame, column: str) -> Dict[str, int]:
    if column not in frame.columns:
        return {}
    counts = frame[column].dropna().map(stringify).value_counts()
    return {str(k): int(v) for k, v in counts.items()}


class EntityService:
    """List/get/create/update/delete/stats for one record type."""

    def __init__(self, config: EntityConfig, repository: InMemoryRepository):
        self.config = config
        self.repository = repository

    # ── Guards ───────────────────────────────────────────────────────

    def require(self, permission: Permission, capability: str) -> None:
        if not permission.allows(capability):
            raise AccessDeniedError(
                f"Role '{permission.role}' is not allowed to do this on {self.config.name}",
                details={"capability": capability},
            )

    def visible(self, permission: Permission, record: Mapping[str, Any]) -> bool:
        if not self.config.location_field:
            return True
        return in_scope(permission.location_scope, record.get(self.config.location_field))

    def scoped(self, permission: Permission, records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        if not self.config.location_field:
            return records
        return list(filter_by_scope(permission.location_scope, records, field=self.config.location_field))

    def _not_found(self, record_id: str) -> NotFoundError:
        label = self.config.singular.capitalize()
        return NotFoundError(f"{label} with id {record_id} not found", code=self.config.not_found_code)

    def find(self, permission: Permission, record_id: str) -> Dict[str, Any]:
        """Fetch a record; records outside the caller's scope do not exist for them."""
        record = self.repository.get(record_id)
        if record is None or not self.visible(permission, record):
            raise self._not_found(record_id)
        return record

    def _ensure_in_scope(self, permission: Permission, record: Mapping[str, Any]) -> None:
        if not self.visible(permission, record):
            raise AccessDeniedError(
                f"{self.config.singular.capitalize()} is outside your location scope",
                details={
                    "locationScope": permission.location_scope,
                    self.config.location_field: record.get(self.config.location_field),
                },
            )

    def _transition(self, permission: Permission, record_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Apply a status-style change to one in-scope record the caller may edit."""
        self.require(permission, self.config.edit_capability)
        self.find(permission, record_id)
        updated = self.repository.update(record_id, {**changes, "updatedAt": utc_timestamp()})
        if updated is None:
            raise self._not_found(record_id)
        return updated

    # ── Operations ───────────────────────────────────────────────────

    def list_records(self, permission: Permission, params: Mapping[str, Any]) -> Dict[str, Any]:
        return _guarded(
            f"GET_{self.config.plural_code}_ERROR", f"Failed to fetch {self.config.name}",
            self._list, permission, params, self.repository.snapshot,
        )

    def list_trash(self, permission: Permission, params: Mapping[str, Any]) -> Dict[str, Any]:
        return _guarded(
            f"GET_TRASHED_{self.config.plural_code}_ERROR", f"Failed to fetch deleted {self.config.name}",
            self._list_trash, permission, params,
        )

    def _list_trash(self, permission, params):
        self.require(permission, "can_view_trash")
        return self._list(permission, params, self.repository.trashed)

    def _list(self, permission, params, source):
        cfg = self.config
        self.require(permission, cfg.view_capability)
        request = parse_query_request(params, cfg.filter_fields, cfg.default_sort_by, cfg.default_sort_order)
        records = self.scoped(permission, source())
        result = run_query(records, request, cfg.search_fields, cfg.date_fields)
        return success_response(result.to_dict())

    def get_record(self, permission: Permission, record_id: str) -> Dict[str, Any]:
        return _guarded(
            f"GET_{self.config.code}_ERROR", f"Failed to fetch {self.config.singular}",
            self._get, permission, record_id,
        )

    def _get(self, permission, record_id):
        self.require(permission, self.config.view_capability)
        return success_response(self.find(permission, record_id))

    def create_record(self, permission: Permission, body: Any) -> Dict[str, Any]:
        return _guarded(
            f"CREATE_{self.config.code}_ERROR", f"Failed to create {self.config.singular}",
            self._create, permission, body,
        )

    def _create(self, permission, body):
        cfg = self.config
        self.require(permission, cfg.edit_capability)
        if not isinstance(body, dict):
            raise ValidationError("Request body must be a JSON object")
        missing = [f for f in cfg.required_fields if body.get(f) in (None, "")]
        if missing:
            raise ValidationError("Missing required fields", details={"missing": missing})

        record = {**copy.deepcopy(cfg.defaults), **body}
        record["id"] = f"{cfg.id_prefix}_{uuid.uuid4().hex[:12]}"
        record.setdefault("createdAt", utc_timestamp())
        self._ensure_in_scope(permission, record)

        created = self.repository.add(record)
        return success_response(created, f"{cfg.singular.capitalize()} created successfully")

    def update_record(self, permission: Permission, record_id: str, body: Any) -> Dict[str, Any]:
        return _guarded(
            f"UPDATE_{self.config.code}_ERROR", f"Failed to update {self.config.singular}",
            self._update, permission, record_id, body,
        )

    def _update(self, permission, record_id, body):
        self.require(permission, self.config.edit_capability)
        if not isinstance(body, dict):
            raise ValidationError("Request body must be a JSON object")
        current = self.find(permission, record_id)

        changes = {k: v for k, v in body.items() if k != "id"}
        # a record may not be moved out of the editor's own scope
        self._ensure_in_scope(permission, {**current, **changes})
        changes["updatedAt"] = utc_timestamp()

        updated = self.repository.update(record_id, changes)
        if updated is None:
            raise self._not_found(record_id)
        return success_response(updated, f"{self.config.singular.capitalize()} updated successfully")

    def delete_record(self, permission: Permission, record_id: str) -> Dict[str, Any]:
        return _guarded(
            f"DELETE_{self.config.code}_ERROR", f"Failed to delete {self.config.singular}",
            self._delete, permission, record_id,
        )

    def _delete(self, permission, record_id):
        self.require(permission, self.config.edit_capability)
        self.find(permission, record_id)
        if self.repository.remove(record_id) is None:
            raise self._not_found(record_id)
        return success_response(
            {"deleted": True, "id": record_id},
            f"{self.config.singular.capitalize()} moved to trash",
        )

    def restore_record(self, permission: Permission, record_id: str) -> Dict[str, Any]:
        return _guarded(
            f"RESTORE_{self.config.code}_ERROR", f"Failed to restore {self.config.singular}",
            self._restore, permission, record_id,
        )

    def _restore(self, permission, record_id):
        self.require(permission, self.config.edit_capability)
        record = self.repository.get_trashed(record_id)
        if record is None or not self.visible(permission, record):
            raise self._not_found(record_id)
        restored = self.repository.restore(record_id)
        return success_response(restored, f"{self.config.singular.capitalize()} restored")

    def stats(self, permission: Permission) -> Dict[str, Any]:
        return _guarded(
            f"GET_{self.config.code}_STATS_ERROR", f"Failed to get {self.config.singular} statistics",
            self._stats_envelope, permission,
        )

    def _stats_envelope(self, permission):
        self.require(permission, self.config.view_capability)
        return success_response(self.compute_stats(permission))

    def compute_stats(self, permission: Permission) -> Dict[str, Any]:
        records = self.scoped(permission, self.repository.snapshot())
        frame = pd.DataFrame.from_records(records) if records else pd.DataFrame()
        stats: Dict[str, Any] = {"total": int(len(frame))}
        for key, column in self.config.stats_groups.items():
            stats[key] = _value_counts(frame, column)
        return stats


class ViolationService(EntityService):
    """Violations add fine totals, payment and per-license lookups."""

    def compute_stats(self, permission: Permission) -> Dict[str, Any]:
        stats = super().compute_stats(permission)
        records = self.scoped(permission, self.repository.snapshot())
        frame = pd.DataFrame.from_records(records) if records else pd.DataFrame(columns=["fine", "status"])

        fines = pd.to_numeric(frame["fine"], errors="coerce").fillna(0) if "fine" in frame else pd.Series(dtype=float)
        paid = frame["status"] == "paid" if "status" in frame else pd.Series(False, index=frame.index)
        stats["totalFines"] = int(fines.sum())
        stats["collectedFines"] = int(fines[paid].sum())
        stats["pendingFines"] = int(fines[~paid].sum())
        stats["avgFine"] = int(round(fines.mean())) if len(fines) else 0
        return stats

    def pay(self, permission: Permission, record_id: str, body: Any) -> Dict[str, Any]:
        return _guarded("PAY_VIOLATION_ERROR", "Failed to process payment", self._pay, permission, record_id, body)

    def _pay(self, permission, record_id, body):
        self.require(permission, self.config.edit_capability)
        violation = self.find(permission, record_id)
        if violation.get("status") == "paid":
            raise ConflictError("This violation has already been paid", code="ALREADY_PAID")

        body = body if isinstance(body, dict) else {}
        method = body.get("paymentMethod")
        if not method:
            raise ValidationError("paymentMethod is required", details={"field": "paymentMethod"})

        now = datetime.now(timezone.utc)
        updated = self.repository.update(record_id, {
            "status": "paid",
            "paymentDate": now.date().isoformat(),
            "paymentMethod": method,
        })
        receipt = {
            "id": f"receipt_{uuid.uuid4().hex[:12]}",
            "amount": violation.get("fine"),
            "date": utc_timestamp(),
            "method": method,
            "transactionId": body.get("transactionId") or f"TXN{int(now.timestamp() * 1000)}",
        }
        return success_response({"violation": updated, "receipt": receipt}, "Payment processed successfully")

    def by_license(self, permission: Permission, license_number: str) -> Dict[str, Any]:
        return _guarded(
            "GET_LICENSE_VIOLATIONS_ERROR", "Failed to get license violations",
            self._summary, permission, "licenseNumber", license_number,
        )

    def by_vehicle(self, permission: Permission, plate_number: str) -> Dict[str, Any]:
        return _guarded(
            "GET_VEHICLE_VIOLATIONS_ERROR", "Failed to get vehicle violations",
            self._summary, permission, "plateNumber", plate_number,
        )

    def _summary(self, permission, field_name, value):
        self.require(permission, self.config.view_capability)
        rows = [
            r for r in self.scoped(permission, self.repository.snapshot())
            if r.get(field_name) == value
        ]
        return success_response({
            "total": len(rows),
            "pending": sum(1 for r in rows if r.get("status") == "pending"),
            "paid": sum(1 for r in rows if r.get("status") == "paid"),
            "totalFines": sum(r.get("fine") or 0 for r in rows),
            "totalPoints": sum(r.get("points") or 0 for r in rows),
            "violations": rows,
        })


class LicenseService(EntityService):
    """Licenses can be suspended or revoked with an optional reason."""

    STATUS_VERBS = {"suspended": "SUSPEND", "revoked": "REVOKE"}

    def set_status(self, permission: Permission, record_id: str, status: str, body: Any = None) -> Dict[str, Any]:
        verb = self.STATUS_VERBS[status]
        return _guarded(
            f"{verb}_LICENSE_ERROR", f"Failed to {verb.lower()} license",
            self._set_status, permission, record_id, status, body,
        )

    def _set_status(self, permission, record_id, status, body):
        reason = str(body.get("reason") or "").strip() if isinstance(body, dict) else ""
        changes = {"status": status}
        if reason:
            changes["statusReason"] = reason
        updated = self._transition(permission, record_id, changes)
        message = f"License {status}: {reason}" if reason else f"License {status}"
        return success_response(updated, message)


class NewsService(EntityService):
    """News moves between draft, published and archived."""

    def publish(self, permission: Permission, record_id: str) -> Dict[str, Any]:
        return _guarded("PUBLISH_NEWS_ERROR", "Failed to publish news", self._publish, permission, record_id)

    def _publish(self, permission, record_id):
        updated = self._transition(permission, record_id, {
            "status": "published",
            "publishDate": datetime.now(timezone.utc).date().isoformat(),
        })
        return success_response(updated, "News published successfully")

    def archive(self, permission: Permission, record_id: str) -> Dict[str, Any]:
        return _guarded("ARCHIVE_NEWS_ERROR", "Failed to archive news", self._archive, permission, record_id)

    def _archive(self, permission, record_id):
        updated = self._transition(permission, record_id, {"status": "archived"})
        return success_response(updated, "News archived successfully")

    def featured(self, permission: Permission, params: Mapping[str, Any]) -> Dict[str, Any]:
        return _guarded(
            "GET_FEATURED_NEWS_ERROR", "Failed to get featured news",
            self._featured, permission, params,
        )

    def _featured(self, permission, params):
        self.require(permission, self.config.view_capability)
        request = parse_query_request(
            {"limit": params.get("limit") or FEATURED_NEWS_LIMIT},
            default_sort_by="publishDate", default_sort_order="desc",
        )
        request.filters = {"status": "published", "featured": True}
        result = run_query(self.repository.snapshot(), request, date_fields=self.config.date_fields)
        return success_response(result.items)


class NotificationService(EntityService):
    """Notifications are read and cleared per wallet address."""

    def mark_read(self, permission: Permission, record_id: str) -> Dict[str, Any]:
        return _guarded(
            "MARK_READ_ERROR", "Failed to mark notification as read",
            self._mark_read, permission, record_id,
        )

    def _mark_read(self, permission, record_id):
        updated = self._transition(permission, record_id, {"read": True})
        return success_response(updated, "Notification marked as read")

    def _owned(self, wallet_address):
        wallet = normalize_identity(wallet_address)
        if not wallet:
            raise ValidationError("walletAddress is required", details={"field": "walletAddress"})
        return [
            r for r in self.repository.snapshot()
            if normalize_identity(r.get("walletAddress")) == wallet
        ]

    def mark_all_read(self, permission: Permission, wallet_address: Optional[str]) -> Dict[str, Any]:
        return _guarded(
            "MARK_ALL_READ_ERROR", "Failed to mark all notifications as read",
            self._mark_all_read, permission, wallet_address,
        )

    def _mark_all_read(self, permission, wallet_address):
        self.require(permission, self.config.edit_capability)
        unread = [r for r in self._owned(wallet_address) if not r.get("read")]
        for row in unread:
            self.repository.update(row["id"], {"read": True})
        return success_response({"updated": len(unread)}, "All notifications marked as read")

    def clear_read(self, permission: Permission, wallet_address: Optional[str]) -> Dict[str, Any]:
        return _guarded(
            "CLEAR_NOTIFICATIONS_ERROR", "Failed to clear notifications",
            self._clear_read, permission, wallet_address,
        )

    def _clear_read(self, permission, wallet_address):
        self.require(permission, self.config.edit_capability)
        cleared = [r for r in self._owned(wallet_address) if r.get("read")]
        for row in cleared:
            self.repository.remove(row["id"])
        return success_response({"deletedCount": len(cleared)}, f"{len(cleared)} read notifications cleared")


class AuthorityService(EntityService):
    """Authorities can be switched active/inactive."""

    def set_active(self, permission: Permission, record_id: str, active: bool) -> Dict[str, Any]:
        verb = "ACTIVATE" if active else "DEACTIVATE"
        return _guarded(
            f"{verb}_AUTHORITY_ERROR", f"Failed to {verb.lower()} authority",
            self._set_active, permission, record_id, active,
        )

    def _set_active(self, permission, record_id, active):
        updated = self._transition(permission, record_id, {"status": "active" if active else "inactive"})
        return success_response(updated, "Authority activated" if active else "Authority deactivated")


SERVICE_CLASSES = {
    "licenses": LicenseService,
    "violations": ViolationService,
    "authorities": AuthorityService,
    "news": NewsService,
    "notifications": NotificationService,
}


def build_services(repositories: Mapping[str, InMemoryRepository]) -> Dict[str, EntityService]:
    """One service per catalog entity, backed by the given repositories."""
    services = {}
    for name, config in ENTITIES.items():
        cls = SERVICE_CLASSES.get(name, EntityService)
        repository = repositories.get(name)
        services[name] = cls(config, repository if repository is not None else InMemoryRepository())
    return services


def dashboard_stats(services: Mapping[str, EntityService], permission: Permission) -> Dict[str, Any]:
    """Stats for every entity the caller can view, over their scope only."""

    def collect():
        if not permission.can_view_dashboard:
            raise AccessDeniedError("Dashboard is not available for this role")
        return success_response({
            name: service.compute_stats(permission)
            for name, service in services.items()
            if permission.allows(service.config.view_capability)
        })

    return _guarded("GET_DASHBOARD_STATS_ERROR", "Failed to fetch dashboard statistics", collect)
