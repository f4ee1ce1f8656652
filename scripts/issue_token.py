#!/usr/bin/env python3
"""
Mint a bearer token for an owner id, signed with SECRET_KEY from .env.

For local development; production tokens come from the identity provider.
"""
import argparse

from app.api.security import issue_owner_token


def main():
    parser = argparse.ArgumentParser(description="Issue an owner access token")
    parser.add_argument("owner_id", help="Owner identifier to embed in the token")
    args = parser.parse_args()

    try:
        token = issue_owner_token(args.owner_id)
    except ValueError as e:
        raise SystemExit(str(e))
    print(token)


if __name__ == "__main__":
    main()
