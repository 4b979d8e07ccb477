#!/usr/bin/env python
"""Create the PostgreSQL database named in `DATABASE_URL`.

Usage:
  python scripts/create_database.py [--password PASSWORD]
"""
import argparse
import os
import sys
from getpass import getpass

# Ensure project root is on sys.path so `membership` can be imported
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import psycopg2
from psycopg2 import OperationalError, sql
from sqlalchemy.engine import make_url

from membership.config import settings


def connect(url, password):
    return psycopg2.connect(
        dbname="postgres",
        user=url.username,
        password=password,
        host=url.host or "localhost",
        port=url.port or 5432,
    )


def create_database(url, password) -> bool:
    """Returns True when the database was created, False when it already existed"""
    conn = connect(url, password)
    conn.autocommit = True
    try:
        with conn.cursor() as cur:
            cur.execute("SELECT 1 FROM pg_database WHERE datname=%s", (url.database,))
            if cur.fetchone():
                return False
            cur.execute(sql.SQL("CREATE DATABASE {};").format(sql.Identifier(url.database)))
            return True
    finally:
        conn.close()


def main():
    url = make_url(settings.DATABASE_URL)
    if not url.get_backend_name().startswith("postgresql"):
        print("DATABASE_URL is not a PostgreSQL URL; nothing to create")
        sys.exit(1)
    if not url.database:
        print("No database name found in DATABASE_URL")
        sys.exit(1)

    # Accept password from CLI or environment for non-interactive use
    parser = argparse.ArgumentParser()
    parser.add_argument("--password", "-p", help="Postgres admin password")
    args = parser.parse_args()
    password = args.password or os.getenv("POSTGRES_PASSWORD") or url.password

    try:
        created = create_database(url, password)
    except OperationalError:
        if not sys.stdin.isatty():
            print("Password authentication failed. Provide the password via --password or POSTGRES_PASSWORD env var.")
            sys.exit(1)
        print("Password authentication failed. Please enter the Postgres password for user:", url.username)
        try:
            created = create_database(url, getpass())
        except OperationalError as e:
            print("Error creating database:", e)
            sys.exit(1)

    if created:
        print(f"Database '{url.database}' created.")
    else:
        print(f"Database '{url.database}' already exists.")


if __name__ == "__main__":
    main()
