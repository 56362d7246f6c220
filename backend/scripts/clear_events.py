#!/usr/bin/env python3
"""
Delete every event after an interactive confirmation.

Run from `backend/` (or with the project installed) so the repository
modules are importable:
    python -m scripts.clear_events
"""

from repo_events import EventRepo


def confirm_deletion() -> bool:
    answer = input(
        "WARNING: This will delete ALL events from the database. This action cannot be undone.\n"
        "Are you sure you want to continue? (yes/no): "
    )
    return answer.strip().lower() == "yes"


def main() -> None:
    repo = EventRepo()
    count = repo.count_all()
    print(f"Found {count} events in the database")

    if count == 0:
        print("Database is already empty")
        return

    if not confirm_deletion():
        print("Operation cancelled")
        return

    deleted = repo.delete_all()
    print(f"Deleted {deleted} events")


if __name__ == "__main__":
    main()
