"""Print a bearer token for an existing staff account.

Usage:
    python -m frontdesk.issue_token staff@clinic.example [--minutes 120]
"""
import argparse
import sys

from frontdesk.auth.jwt_handler import create_access_token
from frontdesk.database import SessionLocal
from frontdesk.models.user import User


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description='Print a bearer token for a staff account.')
    parser.add_argument('email')
    parser.add_argument('--minutes', type=int, default=None, help='token lifetime in minutes')
    args = parser.parse_args(argv)

    email = args.email.strip().lower()
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email).first()
    finally:
        db.close()

    if user is None or not user.is_active:
        print(f"No active user with email {email}", file=sys.stderr)
        sys.exit(1)

    print(create_access_token(subject=user.email, expires_minutes=args.minutes, role=user.role))


if __name__ == "__main__":
    main()
