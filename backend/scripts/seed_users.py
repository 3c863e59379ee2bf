#!/usr/bin/env python
"""Seed script to create one user per role and print bearer tokens.

Creates a lecturer, an examiner assigned to the given courses, and a HOD,
all in the same department. Existing users (matched by email) are reused,
so the script can be run repeatedly to mint fresh tokens.

Usage:
    python backend/scripts/seed_users.py

Environment Variables:
    DATABASE_URL: SQLAlchemy connection string (default: sqlite:///./paperflow.db)
    JWT_SECRET: Token signing key (must match the API's)
    SEED_DEPARTMENT: Department for all seeded users (default: Computer Science)
    SEED_COURSES: Comma separated course codes for the examiner (default: CS101,CS202)
"""

import os
import sys
from pathlib import Path

# Add backend/src to Python path
backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

from sqlalchemy.exc import SQLAlchemyError

from paperflow.auth.jwt import create_access_token
from paperflow.database import get_db_session, init_db
from paperflow.models.user import User


def _get_or_create(session, email, name, role, department, courses=None):
    user = session.query(User).filter(User.email == email.lower()).first()
    if user:
        return user, False

    user = User(
        email=email,
        name=name,
        role=role,
        department=department,
        assigned_course_codes=courses or [],
        status="ACTIVE",
    )
    session.add(user)
    return user, True


def main():
    """Create seed users and print a token for each."""
    department = os.getenv("SEED_DEPARTMENT", "Computer Science")
    courses = [c for c in os.getenv("SEED_COURSES", "CS101,CS202").split(",") if c.strip()]

    init_db()

    try:
        with get_db_session() as session:
            seeds = [
                _get_or_create(session, "lecturer@paperflow.local", "Lena Lecturer", "lecturer", department),
                _get_or_create(session, "examiner@paperflow.local", "Eli Examiner", "examiner", department, courses),
                _get_or_create(session, "hod@paperflow.local", "Harper Head", "hod", department),
            ]
            session.flush()

            for user, created in seeds:
                token = create_access_token(user_id=user.id, role=user.role, email=user.email)
                print(f"{'CREATED' if created else 'EXISTS '} {user.role:<9} {user.email}")
                print(f"  ID:    {user.id}")
                print(f"  Token: {token}")

    except (SQLAlchemyError, ValueError) as e:
        print(f"ERROR: Failed to seed users: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
