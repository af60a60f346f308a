"""Administrative command line: superadmin accounts and database setup."""

from __future__ import annotations

import argparse
import getpass
import sys
from typing import Callable, Optional, Sequence

from sqlalchemy.orm import Session

from iotpilot.core.logging import get_logger, setup_logging
from iotpilot.core.permissions import UserRole
from iotpilot.core.security import get_password_hash
from iotpilot.core.time import utcnow
from iotpilot.db import SessionLocal, User, seed_default_data
from iotpilot.domain.exceptions import ValidationError
from iotpilot.domain.users import Email, Password, UserStatus
from iotpilot.repositories import UserRepository

logger = get_logger("iotpilot.cli")

USERNAME_LENGTH = (3, 50)


class CommandError(Exception):
    """Raised for user-facing CLI failures."""


def _read_password(provided: Optional[str]) -> str:
    if provided:
        return provided
    first = getpass.getpass("Password: ")
    if first != getpass.getpass("Confirm password: "):
        raise CommandError("Passwords do not match")
    return first


def _find_superadmin(users: UserRepository, email: str) -> User:
    user = users.get_by_email(email.strip().lower())
    if user is None or user.role != UserRole.SUPERADMIN.value or user.deleted_at is not None:
        raise CommandError(f"No superadmin with email {email}")
    return user


def create_superadmin(session: Session, args: argparse.Namespace) -> str:
    users = UserRepository(session)
    email = Email(args.email).value
    username = args.username.strip()
    low, high = USERNAME_LENGTH
    if not low <= len(username) <= high:
        raise CommandError(f"Username must be between {low} and {high} characters")
    if users.get_by_email(email) is not None:
        raise CommandError(f"A user with email {email} already exists")
    if users.get_by_username(username) is not None:
        raise CommandError(f"A user with username {username} already exists")
    password = Password(_read_password(args.password))

    user = User(
        email=email,
        username=username,
        hashed_password=get_password_hash(password.value),
        role=UserRole.SUPERADMIN.value,
        status=UserStatus.ACTIVE.value,
        customer_id=None,
    )
    session.add(user)
    session.commit()
    logger.info("Superadmin created", extra={"email": email})
    return f"Created superadmin {email} (id {user.id})"


def list_superadmins(session: Session, args: argparse.Namespace) -> str:
    superadmins = UserRepository(session).list_superadmins()
    if not superadmins:
        return "No superadmin users found."
    lines = [f"{len(superadmins)} superadmin user(s):"]
    for user in superadmins:
        last_login = user.last_login_at.isoformat() if user.last_login_at else "never"
        lines.append(
            f"  [{user.id}] {user.email} ({user.username}) "
            f"status={user.status} last_login={last_login}"
        )
    return "\n".join(lines)


def reset_password(session: Session, args: argparse.Namespace) -> str:
    user = _find_superadmin(UserRepository(session), args.email)
    password = Password(_read_password(args.password))
    user.hashed_password = get_password_hash(password.value)
    session.commit()
    logger.info("Superadmin password reset", extra={"email": user.email})
    return f"Password reset for {user.email}"


def delete_superadmin(session: Session, args: argparse.Namespace) -> str:
    users = UserRepository(session)
    user = _find_superadmin(users, args.email)
    if len(users.list_superadmins()) <= 1:
        raise CommandError("Refusing to delete the last superadmin")
    if not args.yes:
        answer = input(f'Type "DELETE" to remove {user.email}: ')
        if answer != "DELETE":
            raise CommandError("Operation cancelled")

    user.deleted_at = utcnow()
    user.status = UserStatus.INACTIVE.value
    session.commit()
    logger.warning("Superadmin deleted", extra={"email": user.email})
    return f"Deleted superadmin {user.email}"


def init_db(session: Session, args: argparse.Namespace) -> str:
    seed_default_data(session)
    return "Database initialised"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="iotpilot-admin", description=__doc__)
    subparsers = parser.add_subparsers(dest="command", required=True)

    create = subparsers.add_parser("create-superadmin", help="Create a superadmin user")
    create.add_argument("--email", required=True)
    create.add_argument("--username", required=True)
    create.add_argument("--password", help="Prompted for when omitted")
    create.set_defaults(handler=create_superadmin)

    listing = subparsers.add_parser("list-superadmins", help="List superadmin users")
    listing.set_defaults(handler=list_superadmins)

    reset = subparsers.add_parser("reset-password", help="Reset a superadmin password")
    reset.add_argument("--email", required=True)
    reset.add_argument("--password", help="Prompted for when omitted")
    reset.set_defaults(handler=reset_password)

    delete = subparsers.add_parser("delete-superadmin", help="Delete a superadmin user")
    delete.add_argument("--email", required=True)
    delete.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    delete.set_defaults(handler=delete_superadmin)

    init = subparsers.add_parser("init-db", help="Create tables and seed default data")
    init.set_defaults(handler=init_db)
    return parser


def main(
    argv: Optional[Sequence[str]] = None,
    session_factory: Callable[[], Session] = SessionLocal,
) -> int:
    setup_logging()
    args = build_parser().parse_args(argv)
    session = session_factory()
    try:
        print(args.handler(session, args))
    except (CommandError, ValidationError) as exc:
        session.rollback()
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        session.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
