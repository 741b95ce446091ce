#!/usr/bin/env python3
"""
Initialize the DailyThree database.
Creates the users, reset-token, task, expense and habit tables.
"""

import sys
from pathlib import Path

# Allow running from project root
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.config import get_settings  # noqa: E402
from app.database import init_db  # noqa: E402


def main():
    settings = get_settings()
    print("Initializing database...")
    print(f"  DATABASE_URL: {settings.DATABASE_URL[:40]}...")
    print(f"  Environment: {settings.ENVIRONMENT}")
    if settings.uses_dev_jwt_secret:
        print("  Warning: JWT_SECRET is not set; a development signing key will be used.")

    init_db()

    print("Database initialized successfully.")


if __name__ == "__main__":
    main()
