"""
Create a user (e.g. first admin). Run from project root:
  python -m app.scripts.create_user EMAIL NAME PASSWORD [role]
Example:
  python -m app.scripts.create_user admin@example.com "Site Admin" 'S3cure!pass' admin
"""
import argparse
import sys

from app.core.config import get_settings
from app.core.errors import ConflictError
from app.core.security import hash_password, password_meets_policy
from app.repositories import init_backend
from app.repositories.base import USER_ROLES


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a Tablebook user with any role.")
    parser.add_argument("email", help="Login email")
    parser.add_argument("name", help="Display name (1-255 chars)")
    parser.add_argument(
        "password", help="Password (8+ chars, at most 72 bytes, mixed case, digit, special)"
    )
    parser.add_argument("role", nargs="?", default="user", choices=list(USER_ROLES))
    args = parser.parse_args()

    name = args.name.strip()
    if not name or len(name) > 255:
        print("Invalid name length.", file=sys.stderr)
        return 1
    if "@" not in args.email:
        print("Invalid email address.", file=sys.stderr)
        return 1
    if not password_meets_policy(args.password):
        print(
            "Password must be 8+ characters (at most 72 bytes) with upper and lower "
            "case letters, a digit and one of @$!%*?&.",
            file=sys.stderr,
        )
        return 1

    backend = init_backend(get_settings())
    try:
        user = backend.users.create(
            name=name,
            email=args.email,
            password_hash=hash_password(args.password),
            role=args.role,
        )
    except ConflictError:
        print(f"User '{args.email}' already exists.", file=sys.stderr)
        return 1
    finally:
        backend.close()
    print(f"Created user '{user.email}' with role '{user.role}' ({backend.kind} backend).")
    return 0


if __name__ == "__main__":
    sys.exit(main())
