"""
Flask route handlers for the REST API.
"""

import sys
import traceback
from dataclasses import asdict
from datetime import timedelta

from flask import current_app, jsonify, request

from traffic_console.config import TOKEN_EXPIRY_HOURS
from traffic_console.envelope import error_response, success_response
from traffic_console.menu import visible_menu
from traffic_console.rbac import lookup_user, resolve_permission, role_display_name, scope_display_name
from traffic_console.services import dashboard_stats
from traffic_console.api.auth import (
    cleanup_expired_sessions,
    generate_token,
    sessions,
    token_optional,
    token_required,
    utc_now,
)

UNAUTHORIZED_CODES = {"UNAUTHORIZED", "INVALID_TOKEN", "SESSION_NOT_FOUND"}
CONFLICT_CODES = {"ALREADY_PAID"}


def status_for(envelope, ok_status=200):
    """HTTP status matching an envelope's outcome."""
    if envelope["success"]:
        return ok_status
    code = envelope["error"]["code"]
    if code == "VALIDATION_ERROR":
        return 400
    if code in UNAUTHORIZED_CODES:
        return 401
    if code == "ACCESS_DENIED":
        return 403
    if code.endswith("_NOT_FOUND"):
        return 404
    if code in CONFLICT_CODES:
        return 409
    return 500


def reply(envelope, ok_status=200):
    return jsonify(envelope), status_for(envelope, ok_status)


def _menu_payload(permission):
    return [asdict(item) for item in visible_menu(permission)]


def register_routes(app, registry, services):
    """Register all API routes on the Flask *app*."""

    def service_for(entity):
        return services.get(entity)

    def unknown_entity(entity):
        return reply(error_response("RESOURCE_NOT_FOUND", f"Unknown resource '{entity}'"))

    # ── Health / info ────────────────────────────────────────────────

    @app.route("/", methods=["GET"])
    def index():
        return jsonify({
            "service": "Traffic Console API",
            "version": "1.0.0",
            "status": "running",
            "endpoints": {
                "auth": "/api/auth/login",
                "profile": "/api/user/profile",
                "menu": "/api/menu",
                "dashboard": "/api/dashboard/stats",
                "resources": [f"/api/{name}" for name in services],
                "health": "/health",
            },
        })

    @app.route("/health", methods=["GET"])
    def health():
        checks = {
            "registry": len(registry) > 0,
            "records": sum(len(s.repository) for s in services.values()) > 0,
        }
        all_healthy = all(checks.values())
        return jsonify({
            "status": "healthy" if all_healthy else "unhealthy",
            "checks": checks,
            "active_sessions": len(sessions),
        }), 200 if all_healthy else 503

    # ── Auth ─────────────────────────────────────────────────────────

    @app.route("/api/auth/login", methods=["POST"])
    def login():
        if not request.is_json:
            return reply(error_response("VALIDATION_ERROR", "Content-Type must be application/json"))

        data = request.get_json(silent=True) or {}
        address = str(data.get("address") or "").strip()
        if not address:
            return reply(error_response("VALIDATION_ERROR", "address is required",
                                        {"field": "address"}))

        try:
            cleanup_expired_sessions()
            user = lookup_user(address, registry)
            if user is None and current_app.config["DENY_UNKNOWN_IDENTITIES"]:
                print(f"[auth] Refused unknown wallet {address}")
                return reply(error_response("ACCESS_DENIED", "Wallet is not registered for this console"))

            permission = resolve_permission(address, True, registry)
            token = generate_token(address, permission)
            sessions[token] = {
                "address": address,
                "user": user,
                "permission": permission,
                "created_at": utc_now(),
                "last_activity": utc_now(),
            }
            print(f"[auth] {address} logged in as {permission.role} (scope={permission.location_scope})")

            return reply(success_response({
                "token": token,
                "user": asdict(user) if user else None,
                "permission": permission.to_dict(),
                "menu": _menu_payload(permission),
                "expiresAt": (utc_now() + timedelta(hours=TOKEN_EXPIRY_HOURS)).isoformat(),
            }, "Logged in successfully"))

        except Exception as e:
            print(f"[ERROR] Login error: {e}", file=sys.stderr)
            traceback.print_exc()
            return reply(error_response("LOGIN_ERROR", "Internal server error during login"))

    @app.route("/api/auth/logout", methods=["POST"])
    @token_required
    def logout():
        sessions.pop(request.token, None)
        return reply(success_response({"loggedOut": True}, "Logged out successfully"))

    # ── Profile / navigation ─────────────────────────────────────────

    @app.route("/api/user/profile", methods=["GET"])
    @token_required
    def get_profile():
        session_data = request.session_data
        permission = request.permission
        user = session_data["user"]
        return reply(success_response({
            "address": session_data["address"],
            "user": asdict(user) if user else None,
            "permission": permission.to_dict(),
            "roleName": role_display_name(permission.role),
            "scopeName": scope_display_name(permission.location_scope),
            "session": {
                "created_at": session_data["created_at"].isoformat(),
                "last_activity": session_data["last_activity"].isoformat(),
            },
        }))

    @app.route("/api/menu", methods=["GET"])
    @token_optional
    def get_menu():
        return reply(success_response(_menu_payload(request.permission)))

    @app.route("/api/dashboard/stats", methods=["GET"])
    @token_optional
    def get_dashboard_stats():
        return reply(dashboard_stats(services, request.permission))

    # ── Generic entity routes ────────────────────────────────────────

    @app.route("/api/<entity>", methods=["GET"])
    @token_optional
    def list_entities(entity):
        service = service_for(entity)
        if service is None:
            return unknown_entity(entity)
        return reply(service.list_records(request.permission, request.args))

    @app.route("/api/<entity>", methods=["POST"])
    @token_optional
    def create_entity(entity):
        service = service_for(entity)
        if service is None:
            return unknown_entity(entity)
        return reply(service.create_record(request.permission, request.get_json(silent=True)), 201)

    @app.route("/api/<entity>/stats", methods=["GET"])
    @token_optional
    def entity_stats(entity):
        service = service_for(entity)
        if service is None:
            return unknown_entity(entity)
        return reply(service.stats(request.permission))

    @app.route("/api/<entity>/trash", methods=["GET"])
    @token_optional
    def entity_trash(entity):
        service = service_for(entity)
        if service is None:
            return unknown_entity(entity)
        return reply(service.list_trash(request.permission, request.args))

    @app.route("/api/<entity>/<record_id>", methods=["GET"])
    @token_optional
    def get_entity(entity, record_id):
        service = service_for(entity)
        if service is None:
            return unknown_entity(entity)
        return reply(service.get_record(request.permission, record_id))

    @app.route("/api/<entity>/<record_id>", methods=["PUT", "PATCH"])
    @token_optional
    def update_entity(entity, record_id):
        service = service_for(entity)
        if service is None:
            return unknown_entity(entity)
        return reply(service.update_record(request.permission, record_id, request.get_json(silent=True)))

    @app.route("/api/<entity>/<record_id>", methods=["DELETE"])
    @token_optional
    def delete_entity(entity, record_id):
        service = service_for(entity)
        if service is None:
            return unknown_entity(entity)
        return reply(service.delete_record(request.permission, record_id))

    @app.route("/api/<entity>/<record_id>/restore", methods=["POST"])
    @token_optional
    def restore_entity(entity, record_id):
        service = service_for(entity)
        if service is None:
            return unknown_entity(entity)
        return reply(service.restore_record(request.permission, record_id))

    # ── Entity-specific actions ──────────────────────────────────────

    @app.route("/api/violations/<record_id>/pay", methods=["POST"])
    @token_optional
    def pay_violation(record_id):
        return reply(services["violations"].pay(request.permission, record_id, request.get_json(silent=True)))

    @app.route("/api/violations/by-license/<license_number>", methods=["GET"])
    @token_optional
    def violations_by_license(license_number):
        return reply(services["violations"].by_license(request.permission, license_number))

    @app.route("/api/violations/by-vehicle/<plate_number>", methods=["GET"])
    @token_optional
    def violations_by_vehicle(plate_number):
        return reply(services["violations"].by_vehicle(request.permission, plate_number))

    @app.route("/api/licenses/<record_id>/suspend", methods=["POST"])
    @token_optional
    def suspend_license(record_id):
        return reply(services["licenses"].set_status(
            request.permission, record_id, "suspended", request.get_json(silent=True)))

    @app.route("/api/licenses/<record_id>/revoke", methods=["POST"])
    @token_optional
    def revoke_license(record_id):
        return reply(services["licenses"].set_status(
            request.permission, record_id, "revoked", request.get_json(silent=True)))

    @app.route("/api/news/featured", methods=["GET"])
    @token_optional
    def featured_news():
        return reply(services["news"].featured(request.permission, request.args))

    @app.route("/api/news/<record_id>/publish", methods=["POST"])
    @token_optional
    def publish_news(record_id):
        return reply(services["news"].publish(request.permission, record_id))

    @app.route("/api/news/<record_id>/archive", methods=["POST"])
    @token_optional
    def archive_news(record_id):
        return reply(services["news"].archive(request.permission, record_id))

    def wallet_for_request():
        body = request.get_json(silent=True)
        if isinstance(body, dict) and body.get("walletAddress"):
            return body["walletAddress"]
        session_data = request.session_data
        return session_data["address"] if session_data else None

    @app.route("/api/notifications/<record_id>/read", methods=["POST"])
    @token_optional
    def mark_notification_read(record_id):
        return reply(services["notifications"].mark_read(request.permission, record_id))

    @app.route("/api/notifications/read-all", methods=["POST"])
    @token_optional
    def mark_all_notifications_read():
        return reply(services["notifications"].mark_all_read(request.permission, wallet_for_request()))

    @app.route("/api/notifications/clear", methods=["DELETE"])
    @token_optional
    def clear_read_notifications():
        return reply(services["notifications"].clear_read(request.permission, wallet_for_request()))

    @app.route("/api/authorities/<record_id>/activate", methods=["POST"])
    @token_optional
    def activate_authority(record_id):
        return reply(services["authorities"].set_active(request.permission, record_id, True))

    @app.route("/api/authorities/<record_id>/deactivate", methods=["POST"])
    @token_optional
    def deactivate_authority(record_id):
        return reply(services["authorities"].set_active(request.permission, record_id, False))

    # ── Error handlers ───────────────────────────────────────────────

    @app.errorhandler(404)
    def not_found(e):
        return jsonify(error_response("ENDPOINT_NOT_FOUND", "Endpoint not found", str(e))), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify(error_response("METHOD_NOT_ALLOWED", "Method not allowed", str(e))), 405

    @app.errorhandler(500)
    def internal_error(e):
        return jsonify(error_response("INTERNAL_ERROR", "Internal server error", str(e))), 500
