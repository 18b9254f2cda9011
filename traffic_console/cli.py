"""
Interactive CLI for the Traffic Console.
Browse licenses, vehicles, violations and the rest with the permissions of a wallet.
"""

import shlex

import pandas as pd

from traffic_console.config import MAX_PREVIEW_ROWS
from traffic_console.database import engine_from_env, init_registry, init_repositories
from traffic_console.menu import visible_menu
from traffic_console.rbac import lookup_user, resolve_permission, role_display_name, scope_display_name
from traffic_console.services import build_services

HELP = """Commands:
  list <resource> [key=value ...]   e.g. list violations status=pending sortBy=fine sortOrder=desc
  get <resource> <id>
  stats <resource>
  menu
  help
  quit"""


def parse_params(tokens):
    """Turn ``key=value`` tokens into a query-parameter dict."""
    params = {}
    for token in tokens:
        if "=" not in token:
            raise ValueError(f"Expected key=value, got '{token}'")
        key, value = token.split("=", 1)
        params[key] = value
    return params


def print_envelope(envelope):
    """Pretty-print one response envelope; returns its ``data`` on success."""
    if not envelope["success"]:
        error = envelope["error"]
        print(f"\n[{error['code']}] {error['message']}")
        if "details" in error:
            print("Details:", error["details"])
        return None

    data = envelope["data"]
    if isinstance(data, dict) and "items" in data and "pagination" in data:
        items = data["items"]
        p = data["pagination"]
        print(f"\n[page {p['page']}/{p['totalPages']} – {p['total']} total]")
        if not items:
            print("(no rows returned)")
        else:
            print(pd.DataFrame(items).head(MAX_PREVIEW_ROWS).to_markdown(index=False))
    elif isinstance(data, dict):
        print()
        print(pd.Series(data, dtype=object).to_frame("value").to_markdown())
    else:
        print(data)
    return data


def print_menu(permission):
    print("\n[menu]")
    for item in visible_menu(permission):
        print(f"  - {item.label} ({item.id})")


def run_command(line, services, permission):
    """Execute one REPL line. Returns False when the user asked to quit."""
    try:
        parts = shlex.split(line)
    except ValueError as e:
        print("\n[ERROR] Could not parse command.")
        print("Details:", e)
        return True

    if not parts:
        return True
    command, args = parts[0].lower(), parts[1:]

    if command in {"quit", "exit"}:
        print("Goodbye.")
        return False
    if command == "help":
        print(HELP)
        return True
    if command == "menu":
        print_menu(permission)
        return True

    if command not in {"list", "get", "stats"}:
        print(f"Unknown command '{command}'. Type 'help'.")
        return True
    if not args:
        print(f"Usage: {command} <resource> ... (resources: {', '.join(services)})")
        return True

    service = services.get(args[0])
    if service is None:
        print(f"Unknown resource '{args[0]}'. Available: {', '.join(services)}")
        return True

    if command == "list":
        try:
            params = parse_params(args[1:])
        except ValueError as e:
            print("\n[ERROR]", e)
            return True
        print_envelope(service.list_records(permission, params))
    elif command == "get":
        if len(args) < 2:
            print("Usage: get <resource> <id>")
            return True
        print_envelope(service.get_record(permission, args[1]))
    else:
        print_envelope(service.stats(permission))
    return True


def main():
    print("=== Traffic Console: scoped record browser ===\n")

    engine = engine_from_env()
    registry = init_registry(engine)
    services = build_services(init_repositories(engine))

    # ── Login ────────────────────────────────────────────────────────
    try:
        address = input("Enter wallet address (blank for anonymous, or 'quit'): ").strip()
    except (EOFError, KeyboardInterrupt):
        print("\nExiting.")
        return

    if address.lower() in {"quit", "exit"}:
        print("Goodbye.")
        return

    connected = bool(address)
    user = lookup_user(address, registry) if connected else None
    permission = resolve_permission(address or None, connected, registry)

    who = user.name if user else (address if connected else "anonymous")
    print(f"\n[auth] Logged in as: {who} (role={role_display_name(permission.role)})")
    print(f"[auth] Scope: {scope_display_name(permission.location_scope)}")
    print_menu(permission)
    print("\n" + HELP)

    # ── REPL ─────────────────────────────────────────────────────────
    while True:
        try:
            line = input("\nconsole> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nExiting.")
            break

        if not run_command(line, services, permission):
            break


if __name__ == "__main__":
    main()
