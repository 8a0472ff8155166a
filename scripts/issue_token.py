"""Print a session token for a caller, signed with SESSION_SECRET.

Usage: python -m scripts.issue_token --sub 42 --role admin --name "Site Admin"
"""
import argparse
import sys

from services.directory_service.app.config.settings import get_settings
from services.directory_service.app.core.security import ROLES, Caller, create_session_token


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Issue a directory session token")
    parser.add_argument("--sub", required=True, help="caller id")
    parser.add_argument("--role", choices=ROLES, default="user")
    parser.add_argument("--name", default=None)
    parser.add_argument("--expires-minutes", type=int, default=None)
    args = parser.parse_args(argv)

    settings = get_settings()
    if not settings.SESSION_SECRET:
        print("SESSION_SECRET is not set", file=sys.stderr)
        return 1

    caller = Caller(id=args.sub, role=args.role, name=args.name)
    expires = args.expires_minutes or settings.SESSION_EXPIRE_MINUTES
    print(create_session_token(caller, settings.SESSION_SECRET, expires))
    return 0


if __name__ == "__main__":
    sys.exit(main())
