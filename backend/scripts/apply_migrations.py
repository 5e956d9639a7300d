#!/usr/bin/env python3
"""
Script: apply_migrations.py
Purpose: Apply backend/migrations/*.sql to the database in file-name order

Applied files are recorded in schema_migrations, so re-running only
applies new files. Each file runs in its own transaction.

Usage:
    cd backend
    python scripts/apply_migrations.py [--dry-run]

Options:
    --dry-run    List pending migrations without executing them
"""

import os
import sys
import argparse
from pathlib import Path

import psycopg2
from dotenv import load_dotenv

BACKEND_DIR = Path(__file__).parent.parent
MIGRATIONS_DIR = BACKEND_DIR / 'migrations'

load_dotenv(BACKEND_DIR / '.env')

# Add backend directory to path for imports
sys.path.insert(0, str(BACKEND_DIR))

from waterjunction.core.database import get_db_connection_with_retry

DATABASE_URL = os.getenv("DATABASE_URL")


def print_header(title: str):
    """Print formatted header"""
    print(f"\n{'='*60}")
    print(f"  {title}")
    print(f"{'='*60}\n")


def print_step(step: int, description: str):
    """Print step indicator"""
    print(f"\n[Step {step}] {description}")
    print("-" * 50)


def ensure_migrations_table(cursor):
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS schema_migrations (
            filename VARCHAR(255) PRIMARY KEY,
            applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)


def get_applied(cursor) -> set:
    cursor.execute("SELECT filename FROM schema_migrations")
    return {row[0] for row in cursor.fetchall()}


def main():
    parser = argparse.ArgumentParser(description="Apply SQL migrations")
    parser.add_argument('--dry-run', action='store_true', help="List pending migrations only")
    args = parser.parse_args()

    print_header("WaterJunction - Database Migrations")

    if not DATABASE_URL:
        print("ERROR: DATABASE_URL not configured")
        sys.exit(1)

    files = sorted(MIGRATIONS_DIR.glob('*.sql'))
    if not files:
        print(f"No migrations found in {MIGRATIONS_DIR}")
        return

    conn = get_db_connection_with_retry()
    cursor = conn.cursor()

    try:
        print_step(1, "Checking applied migrations")
        ensure_migrations_table(cursor)
        conn.commit()
        applied = get_applied(cursor)
        pending = [path for path in files if path.name not in applied]

        print(f"  Found {len(files)} migration files, {len(pending)} pending")
        for path in pending:
            print(f"    - {path.name}")

        if not pending:
            print("\n  Database is up to date")
            return

        if args.dry_run:
            print("\n  [DRY RUN] No changes made")
            return

        print_step(2, "Applying migrations")
        for path in pending:
            print(f"  Applying {path.name}...")
            try:
                cursor.execute(path.read_text())
                cursor.execute(
                    "INSERT INTO schema_migrations (filename) VALUES (%s)",
                    (path.name,)
                )
                conn.commit()
                print(f"  ✓ {path.name}")
            except psycopg2.Error as e:
                conn.rollback()
                print(f"  ✗ {path.name} failed: {e}")
                sys.exit(1)

        print_header("Migrations complete")

    finally:
        cursor.close()
        conn.close()


if __name__ == "__main__":
    main()
