#!/usr/bin/env python3
"""
Database initialization script

Creates the payroll schema and optionally seeds employees and clients from a
roster JSON file.
"""
import argparse
import sys
from pathlib import Path

from session_payroll.core.repositories import PostgresRosterStore, load_roster_json
from session_payroll.utils.db_connection import get_db_connection

SCHEMA_FILE = Path(__file__).parent.parent / "db" / "schema.sql"


def run_sql_file(conn, sql_file: Path, description: str):
    """Execute a SQL file"""
    print(f"\n📄 {description}")
    print(f"   File: {sql_file}")

    with open(sql_file, 'r', encoding='utf-8') as f:
        sql = f.read()

    cursor = conn.cursor()
    try:
        cursor.execute(sql)
        conn.commit()
        print(f"   ✅ Success")
    except Exception as e:
        conn.rollback()
        print(f"   ❌ Error: {e}")
        raise
    finally:
        cursor.close()


def seed_roster(conn, roster_file: Path):
    """Copy employees and clients from a roster JSON into the database"""
    print(f"\n👥 Loading roster from {roster_file}")

    roster = load_roster_json(roster_file)
    db_store = PostgresRosterStore(conn)

    client_count = 0
    for employee in roster.get_all_employees():
        db_store.create_employee(employee)

        # Skip clients that are already there (re-running the seed)
        existing = {client.name for client in db_store.get_clients(employee.id)}
        for client in roster.get_clients(employee.id):
            if client.name in existing:
                continue
            db_store.create_client(client)
            client_count += 1

    print(f"   ✅ Loaded {len(roster.get_all_employees())} employees, {client_count} new clients")


def print_summary(conn):
    """Print database summary"""
    cursor = conn.cursor()

    print("\n" + "=" * 80)
    print("📊 DATABASE SUMMARY")
    print("=" * 80)

    cursor.execute("SELECT COUNT(*) FROM employees")
    print(f"Employees: {cursor.fetchone()[0]}")

    cursor.execute("""
        SELECT e.name, COUNT(c.id)
        FROM employees e
        LEFT JOIN clients c ON c.employee_id = e.id
        GROUP BY e.name
        ORDER BY e.name
    """)
    print(f"\nClients:")
    for name, count in cursor.fetchall():
        print(f"  • {name}: {count}")

    cursor.execute("SELECT COUNT(*) FROM match_confirmations")
    print(f"\nStored match decisions: {cursor.fetchone()[0]}")

    print("=" * 80)
    cursor.close()


def main():
    """Main initialization function"""
    parser = argparse.ArgumentParser(description='Initialize the payroll database')
    parser.add_argument('--roster', type=Path, help='Roster JSON with employees and clients to load')
    args = parser.parse_args()

    print("=" * 80)
    print("🚀 PAYROLL DATABASE INITIALIZATION")
    print("=" * 80)

    if args.roster and not args.roster.exists():
        print(f"\n❌ Roster file not found: {args.roster}")
        sys.exit(1)

    # Connect to database
    print("\n🔌 Connecting to database...")
    try:
        conn = get_db_connection()
        print("   ✅ Connected")
    except Exception as e:
        print(f"   ❌ Connection failed: {e}")
        print("\nCheck DB_HOST / DB_PORT / DB_NAME / DB_USER / DB_PASSWORD in .env")
        sys.exit(1)

    try:
        # 1. Create schema
        run_sql_file(conn, SCHEMA_FILE, "Creating database schema")

        # 2. Load roster
        if args.roster:
            seed_roster(conn, args.roster)

        # 3. Print summary
        print_summary(conn)

        print("\n✅ Database initialization complete!")
        print("\nNext steps:")
        print("  1. Calculate payroll: payroll-calc <employee_id> events.json --start 2025-01-01 --end 2025-01-31")
        print("  2. Review uncertain matches: payroll-review <employee_id> events.json --start ... --end ...")

    except Exception as e:
        print(f"\n❌ Initialization failed: {e}")
        sys.exit(1)
    finally:
        conn.close()


if __name__ == "__main__":
    main()
