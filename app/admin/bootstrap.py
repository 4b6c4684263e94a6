#!/usr/bin/env python3
"""
Create the first admin account, or promote an existing user to admin.

    python -m app.admin.bootstrap --email admin@example.com
"""
import argparse
import getpass
import sys

from loguru import logger

from app.database import Base, SessionLocal, engine
from app import models  # noqa: F401
from app.security.passwords import MIN_PASSWORD_LENGTH, hash_password
from app.users import crud as user_crud
from app.users.models import Role


def prompt_password() -> str:
    new_pass = getpass.getpass("Enter password for the admin (hidden): ").strip()
    if len(new_pass) < MIN_PASSWORD_LENGTH:
        print(f"Password must be at least {MIN_PASSWORD_LENGTH} characters. Exiting.")
        sys.exit(1)
    new_pass2 = getpass.getpass("Confirm password: ").strip()
    if new_pass != new_pass2:
        print("Passwords do not match. Exiting.")
        sys.exit(1)
    return new_pass


def ensure_admin(db, email: str, name: str | None, password: str | None) -> str:
    """Promote or create the admin. Returns 'promoted', 'unchanged' or 'created'."""
    user = user_crud.get_user_by_email(db, email)
    if user:
        if user.role == Role.admin:
            return "unchanged"
        user.role = Role.admin
        db.commit()
        return "promoted"

    if not password:
        raise ValueError("A password is required to create a new admin")

    user_crud.create_user(
        db,
        email=email,
        hashed_password=hash_password(password),
        name=name,
        role="admin",
    )
    return "created"


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Create an admin account or promote an existing user to admin."
    )
    parser.add_argument("--email", required=True, help="Email of the admin account")
    parser.add_argument("--name", default=None, help="Display name for a new account")
    args = parser.parse_args(argv)

    email = args.email.strip().lower()

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        password = None
        if not user_crud.get_user_by_email(db, email):
            password = prompt_password()
        outcome = ensure_admin(db, email, args.name, password)
    finally:
        db.close()

    logger.info(f"Admin bootstrap for {email}: {outcome}")
    print(f"[OK] {email}: {outcome}")


if __name__ == "__main__":
    main()
