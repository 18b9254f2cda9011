"""
Database engine initialisation and loading of the registry and records.

A database is optional: without ``DB_URI`` the console runs on the built-in
registry and generated sample data.
"""

import os
import sys
from typing import Any, Dict, List, Optional

from sqlalchemy import MetaData, Table, create_engine, select, text

from traffic_console.config import get_env
from traffic_console.entities import ENTITIES
from traffic_console.models import UserConfig
from traffic_console.rbac import ROLES, build_registry, default_registry
from traffic_console.repository import InMemoryRepository
from traffic_console.seed import generate_dataset


def init_engine():
    """Create a SQLAlchemy engine and verify the connection."""
    db_uri = get_env("DB_URI")
    engine = create_engine(db_uri, echo=False, future=True)
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        print("ERROR: could not connect to DB:", e, file=sys.stderr)
        sys.exit(1)
    print("[init] Connected to DB.")
    return engine


def load_registry(engine) -> Dict[str, UserConfig]:
    """Read active console users from portal_users."""
    sql = text("""
        SELECT wallet_address, role, location_scope, display_name, organization
        FROM portal_users
        WHERE is_active = 1
    """)
    with engine.connect() as conn:
        rows = conn.execute(sql).mappings().all()

    entries = []
    for row in rows:
        role = str(row["role"]).strip().lower()
        if role not in ROLES:
            print(f"[WARN] Unsupported role '{row['role']}' for {row['wallet_address']}; "
                  "it will resolve as viewer.", file=sys.stderr)
        entries.append({
            "address": row["wallet_address"],
            "role": role,
            "location_scope": row["location_scope"],
            "name": row["display_name"],
            "organization": row["organization"],
        })
    return build_registry(entries)


def load_records(engine, table_name: str) -> List[Dict[str, Any]]:
    """Reflect *table_name* and return its rows as plain dicts."""
    table = Table(table_name, MetaData(), autoload_with=engine)
    with engine.connect() as conn:
        return [dict(row) for row in conn.execute(select(table)).mappings()]


def init_registry(engine=None) -> Dict[str, UserConfig]:
    if engine is None:
        print("[init] Using built-in user registry.")
        return default_registry()
    registry = load_registry(engine)
    print(f"[init] Loaded {len(registry)} users from portal_users.")
    return registry


def init_repositories(engine=None) -> Dict[str, InMemoryRepository]:
    """Repositories filled from the database tables, or from sample data."""
    if engine is None:
        dataset = generate_dataset()
        print("[init] Generated sample data: "
              + ", ".join(f"{name}={len(rows)}" for name, rows in dataset.items()))
        return {name: InMemoryRepository(rows) for name, rows in dataset.items()}

    repositories = {}
    for name, config in ENTITIES.items():
        rows = load_records(engine, config.table)
        repositories[name] = InMemoryRepository(rows)
        print(f"[init] Loaded {len(rows)} rows from {config.table}.")
    return repositories


def engine_from_env() -> Optional[Any]:
    """An engine when DB_URI is set, otherwise None."""
    if not os.getenv("DB_URI"):
        return None
    return init_engine()
