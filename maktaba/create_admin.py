"""One-time script to create an admin user or reset an existing one.

Usage:
    python -m maktaba.create_admin
"""

from __future__ import annotations

import getpass

from maktaba.app.core.database import SessionLocal, init_db
from maktaba.app.core.security import get_password_hash, validate_password_strength
from maktaba.app.models.user import RoleEnum
from maktaba.app.services.ledger import ensure_default_accounts
from maktaba.app.services.users import create_user, find_by_username


def main() -> None:
    username = input("Username [admin]: ").strip() or "admin"
    password = getpass.getpass("Password: ")
    if not password:
        print("Error: password cannot be empty.")
        return
    pw_error = validate_password_strength(password)
    if pw_error:
        print(f"Error: {pw_error}")
        return

    init_db()
    db = SessionLocal()
    try:
        ensure_default_accounts(db)
        existing = find_by_username(db, username)
        if existing:
            # Reset password, unlock, activate and promote
            existing.hashed_password = get_password_hash(password)
            existing.is_active = True
            existing.failed_login_attempts = 0
            existing.locked_until = None
            existing.role = RoleEnum.ADMIN
            db.commit()
            print("Admin user already exists, password reset.")
            print(f"  ID:       {existing.id}")
            print(f"  Username: {existing.username}")
            return

        user = create_user(
            db, username=username, password=password, role=RoleEnum.ADMIN, admin_id=None
        )
        db.commit()
        db.refresh(user)
        print("Admin user created successfully!")
        print(f"  ID:       {user.id}")
        print(f"  Username: {username}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
