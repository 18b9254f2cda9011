#!/usr/bin/env python3
"""
Generate the JWT signing key for console sessions.
Paste the printed line into your .env file.
"""

import secrets


def generate_secret_key(nbytes=32):
    return secrets.token_hex(nbytes)


if __name__ == "__main__":
    print("=" * 60)
    print("Traffic Console – JWT Secret Key")
    print("=" * 60)

    print(f"\nJWT_SECRET_KEY={generate_secret_key()}")
    print("\n" + "=" * 60)
    print("Tokens signed with the old key stop working after the change.")
    print("=" * 60)
