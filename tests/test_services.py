"""
Unit tests for entity services – capability guards, scoping and CRUD.
"""

from dataclasses import replace

from traffic_console.entities import VIOLATIONS
from traffic_console.envelope import success_response
from traffic_console.repository import InMemoryRepository
from traffic_console.rbac import REGIONAL_ADMIN, VIEWER, permissions_for
from traffic_console.services import (
    AuthorityService,
    EntityService,
    LicenseService,
    NewsService,
    NotificationService,
    ViolationService,
    _guarded,
    build_services,
    dashboard_stats,
)


def _ids(envelope):
    return [r["id"] for r in envelope["data"]["items"]]


# ── Tests: listing ───────────────────────────────────────────────────

def test_viewer_lists_all_licenses_sorted_by_issue_date(services, viewer):
    env = services["licenses"].list_records(viewer, {})
    assert env["success"] is True
    assert _ids(env) == ["lic_003", "lic_001", "lic_002"]
    assert env["data"]["pagination"]["total"] == 3


def test_regional_admin_only_sees_own_region(services, hanoi_admin):
    env = services["violations"].list_records(hanoi_admin, {"sortBy": "date", "sortOrder": "asc"})
    assert _ids(env) == ["vio_002", "vio_001"]


def test_scope_is_applied_before_filters_and_search(services, hanoi_admin):
    env = services["violations"].list_records(hanoi_admin, {"search": "Trần"})
    assert env["data"]["items"] == []
    assert env["data"]["pagination"] == {"page": 1, "limit": 10, "total": 0, "totalPages": 0}


def test_listing_filters_by_query_params(services, super_admin):
    env = services["violations"].list_records(super_admin, {"status": "pending", "city": "all"})
    assert sorted(_ids(env)) == ["vio_001", "vio_003"]


def test_listing_without_view_capability_is_denied(services, hanoi_admin):
    env = services["authorities"].list_records(hanoi_admin, {})
    assert env["success"] is False
    assert env["error"]["code"] == "ACCESS_DENIED"


def test_bad_paging_is_a_validation_error(services, viewer):
    env = services["licenses"].list_records(viewer, {"page": "0"})
    assert env["error"]["code"] == "VALIDATION_ERROR"
    assert env["error"]["details"]["field"] == "page"


def test_unscoped_entities_ignore_location(services, hanoi_admin):
    env = services["news"].list_records(hanoi_admin, {})
    assert _ids(env) == ["news_004", "news_003", "news_002", "news_001"]


# ── Tests: get ───────────────────────────────────────────────────────

def test_get_in_scope(services, hanoi_admin):
    env = services["licenses"].get_record(hanoi_admin, "lic_001")
    assert env["data"]["holderName"] == "Nguyễn Văn A"


def test_get_out_of_scope_is_not_found(services, hanoi_admin):
    env = services["licenses"].get_record(hanoi_admin, "lic_002")
    assert env["error"]["code"] == "LICENSE_NOT_FOUND"


def test_get_missing(services, super_admin):
    env = services["violations"].get_record(super_admin, "nope")
    assert env["error"] == {"code": "VIOLATION_NOT_FOUND", "message": "Violation with id nope not found"}


# ── Tests: create / update / delete ──────────────────────────────────

NEW_LICENSE = {
    "holderName": "Phạm D", "idCard": "004", "licenseType": "A1",
    "city": "Hà Nội", "issuePlace": "Sở GTVT Hà Nội",
}


def test_viewer_cannot_create(services, viewer):
    env = services["licenses"].create_record(viewer, dict(NEW_LICENSE))
    assert env["error"]["code"] == "ACCESS_DENIED"
    assert len(services["licenses"].repository) == 3


def test_create_fills_defaults_and_id(services, hanoi_admin):
    env = services["licenses"].create_record(hanoi_admin, dict(NEW_LICENSE))
    assert env["success"] is True
    assert env["message"] == "License created successfully"
    record = env["data"]
    assert record["id"].startswith("lic_")
    assert record["status"] == "active"
    assert record["onBlockchain"] is False
    assert "createdAt" in record
    assert services["licenses"].repository.get(record["id"]) is not None


def test_create_outside_scope_is_denied(services, hanoi_admin):
    body = dict(NEW_LICENSE, city="Thái Nguyên")
    env = services["licenses"].create_record(hanoi_admin, body)
    assert env["error"]["code"] == "ACCESS_DENIED"


def test_create_missing_fields(services, super_admin):
    env = services["licenses"].create_record(super_admin, {"holderName": "X"})
    assert env["error"]["code"] == "VALIDATION_ERROR"
    assert "idCard" in env["error"]["details"]["missing"]


def test_create_requires_object_body(services, super_admin):
    env = services["licenses"].create_record(super_admin, None)
    assert env["error"]["code"] == "VALIDATION_ERROR"


def test_update_keeps_id_and_stamps_time(services, hanoi_admin):
    env = services["licenses"].update_record(hanoi_admin, "lic_001", {"id": "hijack", "status": "suspended"})
    assert env["data"]["id"] == "lic_001"
    assert env["data"]["status"] == "suspended"
    assert "updatedAt" in env["data"]


def test_update_cannot_move_record_out_of_scope(services, hanoi_admin):
    env = services["licenses"].update_record(hanoi_admin, "lic_001", {"city": "Huế"})
    assert env["error"]["code"] == "ACCESS_DENIED"
    assert services["licenses"].repository.get("lic_001")["city"] == "Hà Nội"


def test_update_out_of_scope_record_is_not_found(services, hanoi_admin):
    env = services["licenses"].update_record(hanoi_admin, "lic_002", {"status": "active"})
    assert env["error"]["code"] == "LICENSE_NOT_FOUND"


def test_delete_then_restore(services, hanoi_admin):
    svc = services["licenses"]
    env = svc.delete_record(hanoi_admin, "lic_001")
    assert env["data"] == {"deleted": True, "id": "lic_001"}
    assert svc.get_record(hanoi_admin, "lic_001")["error"]["code"] == "LICENSE_NOT_FOUND"

    trash = svc.list_trash(hanoi_admin, {})
    assert _ids(trash) == ["lic_001"]

    restored = svc.restore_record(hanoi_admin, "lic_001")
    assert restored["success"] is True
    assert svc.get_record(hanoi_admin, "lic_001")["success"] is True


def test_trash_requires_trash_capability(services, viewer):
    env = services["licenses"].list_trash(viewer, {})
    assert env["error"]["code"] == "ACCESS_DENIED"


def test_restore_missing_is_not_found(services, super_admin):
    env = services["licenses"].restore_record(super_admin, "lic_001")
    assert env["error"]["code"] == "LICENSE_NOT_FOUND"


# ── Tests: stats ─────────────────────────────────────────────────────

def test_violation_stats_in_scope(services, hanoi_admin):
    stats = services["violations"].stats(hanoi_admin)["data"]
    assert stats["total"] == 2
    assert stats["byStatus"] == {"pending": 1, "paid": 1}
    assert stats["totalFines"] == 1_500_000
    assert stats["collectedFines"] == 500_000
    assert stats["pendingFines"] == 1_000_000
    assert stats["avgFine"] == 750_000


def test_stats_on_empty_repository(super_admin):
    svc = ViolationService(VIOLATIONS, InMemoryRepository())
    stats = svc.compute_stats(super_admin)
    assert stats["total"] == 0
    assert stats["byStatus"] == {}
    assert stats["totalFines"] == 0
    assert stats["avgFine"] == 0


def test_boolean_groups_are_stringified(super_admin):
    svc = build_services({"notifications": InMemoryRepository([
        {"id": "n1", "type": "info", "read": True},
        {"id": "n2", "type": "info", "read": False},
        {"id": "n3", "type": "warning", "read": True},
    ])})["notifications"]
    stats = svc.compute_stats(super_admin)
    assert stats["byRead"] == {"true": 2, "false": 1}
    assert stats["byType"] == {"info": 2, "warning": 1}


def test_dashboard_skips_entities_the_role_cannot_view(services, hanoi_admin):
    data = dashboard_stats(services, hanoi_admin)["data"]
    assert "authorities" not in data
    assert data["licenses"]["total"] == 1


def test_dashboard_requires_capability(services):
    perm = permissions_for(VIEWER, "all")
    denied = replace(perm, can_view_dashboard=False)
    assert dashboard_stats(services, denied)["error"]["code"] == "ACCESS_DENIED"


# ── Tests: violation actions ─────────────────────────────────────────

def test_pay_violation(services, hanoi_admin):
    env = services["violations"].pay(hanoi_admin, "vio_001", {"paymentMethod": "bank_transfer"})
    assert env["message"] == "Payment processed successfully"
    assert env["data"]["violation"]["status"] == "paid"
    assert env["data"]["receipt"]["amount"] == 1_000_000
    assert env["data"]["receipt"]["method"] == "bank_transfer"


def test_pay_twice_is_a_conflict(services, hanoi_admin):
    env = services["violations"].pay(hanoi_admin, "vio_002", {"paymentMethod": "cash"})
    assert env["error"]["code"] == "ALREADY_PAID"


def test_pay_requires_method(services, super_admin):
    env = services["violations"].pay(super_admin, "vio_003", {})
    assert env["error"]["code"] == "VALIDATION_ERROR"


def test_pay_out_of_scope(services, hanoi_admin):
    env = services["violations"].pay(hanoi_admin, "vio_003", {"paymentMethod": "cash"})
    assert env["error"]["code"] == "VIOLATION_NOT_FOUND"


def test_by_license_totals(services, super_admin):
    data = services["violations"].by_license(super_admin, "GPLX00000001")["data"]
    assert data["total"] == 2
    assert data["pending"] == 1
    assert data["paid"] == 1
    assert data["totalFines"] == 1_500_000
    assert data["totalPoints"] == 2


def test_by_license_respects_scope():
    svc = ViolationService(VIOLATIONS, InMemoryRepository([
        {"id": "v1", "licenseNumber": "L1", "city": "Thái Nguyên", "fine": 10, "status": "pending"},
    ]))
    data = svc.by_license(permissions_for(REGIONAL_ADMIN, "hanoi"), "L1")["data"]
    assert data["total"] == 0


# ── Tests: authority actions ─────────────────────────────────────────

def test_deactivate_authority(services, super_admin):
    svc = services["authorities"]
    assert isinstance(svc, AuthorityService)
    env = svc.set_active(super_admin, "auth_001", False)
    assert env["message"] == "Authority deactivated"
    assert env["data"]["status"] == "inactive"


def test_regional_admin_cannot_activate_authority(services, hanoi_admin):
    env = services["authorities"].set_active(hanoi_admin, "auth_001", True)
    assert env["error"]["code"] == "ACCESS_DENIED"


# ── Tests: wiring ────────────────────────────────────────────────────

def test_build_services_fills_missing_repositories():
    services = build_services({})
    assert set(services) == {"licenses", "vehicles", "violations", "authorities", "news", "notifications"}
    assert type(services["vehicles"]) is EntityService
    assert isinstance(services["licenses"], LicenseService)
    assert isinstance(services["news"], NewsService)
    assert isinstance(services["notifications"], NotificationService)
    assert len(services["vehicles"].repository) == 0


def test_guarded_turns_unexpected_errors_into_envelopes(capsys):
    def boom():
        raise RuntimeError("disk on fire")

    env = _guarded("GET_THINGS_ERROR", "Failed to fetch things", boom)
    assert env["error"] == {
        "code": "GET_THINGS_ERROR", "message": "Failed to fetch things", "details": "disk on fire",
    }
    assert "[ERROR] GET_THINGS_ERROR" in capsys.readouterr().err


def test_guarded_passes_results_through():
    assert _guarded("X", "x", lambda: success_response(1))["data"] == 1


# ── Tests: license status actions ────────────────────────────────────

def test_suspend_license_with_reason(services, hanoi_admin):
    env = services["licenses"].set_status(hanoi_admin, "lic_001", "suspended", {"reason": "Nồng độ cồn"})
    assert env["message"] == "License suspended: Nồng độ cồn"
    assert env["data"]["status"] == "suspended"
    assert env["data"]["statusReason"] == "Nồng độ cồn"
    assert "updatedAt" in env["data"]


def test_revoke_license_without_reason(services, super_admin):
    env = services["licenses"].set_status(super_admin, "lic_002", "revoked")
    assert env["message"] == "License revoked"
    assert services["licenses"].repository.get("lic_002")["status"] == "revoked"


def test_license_status_respects_scope_and_role(services, hanoi_admin, viewer):
    out_of_scope = services["licenses"].set_status(hanoi_admin, "lic_002", "revoked")
    assert out_of_scope["error"]["code"] == "LICENSE_NOT_FOUND"
    denied = services["licenses"].set_status(viewer, "lic_001", "suspended")
    assert denied["error"]["code"] == "ACCESS_DENIED"
    assert services["licenses"].repository.get("lic_001")["status"] == "active"


# ── Tests: news actions ──────────────────────────────────────────────

def test_publish_news_sets_today(services, super_admin):
    env = services["news"].publish(super_admin, "news_002")
    assert env["message"] == "News published successfully"
    assert env["data"]["status"] == "published"
    assert len(env["data"]["publishDate"]) == 10


def test_archive_news(services, hanoi_admin):
    env = services["news"].archive(hanoi_admin, "news_001")
    assert env["data"]["status"] == "archived"


def test_news_actions_need_edit_capability(services, viewer):
    assert services["news"].publish(viewer, "news_002")["error"]["code"] == "ACCESS_DENIED"
    assert services["news"].archive(viewer, "missing")["error"]["code"] == "ACCESS_DENIED"


def test_archive_missing_news(services, super_admin):
    assert services["news"].archive(super_admin, "missing")["error"]["code"] == "NEWS_NOT_FOUND"


def test_featured_news_is_published_only_newest_first(services, viewer):
    env = services["news"].featured(viewer, {})
    assert [r["id"] for r in env["data"]] == ["news_003", "news_001"]
    limited = services["news"].featured(viewer, {"limit": "1"})
    assert [r["id"] for r in limited["data"]] == ["news_003"]


def test_featured_news_rejects_bad_limit(services, viewer):
    assert services["news"].featured(viewer, {"limit": "0"})["error"]["code"] == "VALIDATION_ERROR"


# ── Tests: notification actions ──────────────────────────────────────

def test_mark_notification_read(services, hanoi_admin):
    env = services["notifications"].mark_read(hanoi_admin, "notif_001")
    assert env["message"] == "Notification marked as read"
    assert env["data"]["read"] is True


def test_mark_missing_notification(services, hanoi_admin):
    env = services["notifications"].mark_read(hanoi_admin, "nope")
    assert env["error"]["code"] == "NOTIFICATION_NOT_FOUND"


def test_mark_all_read_only_touches_own_wallet(services, hanoi_admin):
    env = services["notifications"].mark_all_read(hanoi_admin, "0xE083813DDD4A50ACA941DB0DDCDDF10C5A9AEE04")
    assert env["data"] == {"updated": 1}
    repo = services["notifications"].repository
    assert repo.get("notif_001")["read"] is True
    assert repo.get("notif_003")["read"] is True


def test_clear_read_moves_own_read_notifications_to_trash(services, hanoi_admin):
    svc = services["notifications"]
    env = svc.clear_read(hanoi_admin, "0xe083813ddd4a50aca941db0ddcddf10c5a9aee04")
    assert env["data"] == {"deletedCount": 1}
    assert env["message"] == "1 read notifications cleared"
    assert svc.repository.get("notif_002") is None
    assert svc.repository.get("notif_003") is not None
    assert [r["id"] for r in svc.repository.trashed()] == ["notif_002"]


def test_notification_bulk_actions_need_wallet(services, hanoi_admin):
    env = services["notifications"].clear_read(hanoi_admin, None)
    assert env["error"]["code"] == "VALIDATION_ERROR"
    assert env["error"]["details"] == {"field": "walletAddress"}


def test_notification_bulk_actions_need_edit_capability(services, viewer):
    env = services["notifications"].mark_all_read(viewer, "0xe083813ddd4a50aca941db0ddcddf10c5a9aee04")
    assert env["error"]["code"] == "ACCESS_DENIED"


# ── Tests: violations by vehicle ─────────────────────────────────────

def test_by_vehicle_totals(services, super_admin):
    data = services["violations"].by_vehicle(super_admin, "30A-123.45")["data"]
    assert data["total"] == 2
    assert data["pending"] == 1
    assert data["paid"] == 1
    assert data["totalFines"] == 1_500_000


def test_by_vehicle_respects_scope(services, hanoi_admin):
    data = services["violations"].by_vehicle(hanoi_admin, "20B-555.11")["data"]
    assert data == {"total": 0, "pending": 0, "paid": 0, "totalFines": 0, "totalPoints": 0, "violations": []}


# ── Tests: isolation from the store ──────────────────────────────────

def test_returned_records_do_not_alias_the_store(services, viewer):
    env = services["news"].get_record(viewer, "news_001")
    env["data"]["tags"].append("changed")
    listed = services["news"].list_records(viewer, {})
    next(r for r in listed["data"]["items"] if r["id"] == "news_001")["tags"].append("changed")
    assert services["news"].repository.get("news_001")["tags"] == ["luật"]
