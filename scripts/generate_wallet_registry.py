#!/usr/bin/env python3
"""
Generate portal_users rows for console administrators.
Prints INSERT statements with placeholder wallet addresses that can be
replaced by the real ones before running them.
"""

import secrets

ROWS = [
    ("Quản trị viên hệ thống", "super-admin", "all", "Bộ Công an - Cục CSGT"),
    ("Quản trị viên Hà Nội", "regional-admin", "hanoi", "Công an TP. Hà Nội"),
    ("Quản trị viên Thái Nguyên", "regional-admin", "thai-nguyen", "Công an tỉnh Thái Nguyên"),
]


def generate_wallet_address():
    """A random 20-byte hex address in 0x form."""
    return "0x" + secrets.token_hex(20)


def insert_statement(address, display_name, role, scope, organization):
    return f"""
INSERT INTO portal_users
    (wallet_address, display_name, role, location_scope, organization, is_active)
VALUES
    ('{address}', '{display_name}', '{role}', '{scope}', '{organization}', 1);
"""


if __name__ == "__main__":
    print("=" * 70)
    print("Traffic Console – portal_users rows")
    print("=" * 70)

    for display_name, role, scope, organization in ROWS:
        print(f"-- {role} ({scope})")
        print(insert_statement(generate_wallet_address(), display_name, role, scope, organization))

    print("=" * 70)
    print("Note: unknown wallets still log in as viewers unless")
    print("DENY_UNKNOWN_IDENTITIES=true is set.")
    print("=" * 70)
