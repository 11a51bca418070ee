"""
PostgreSQL connection for the payroll stores
"""
import os
from typing import Optional

import psycopg2
from dotenv import load_dotenv

from session_payroll.core.repositories import StoreError


# Load environment variables
load_dotenv()

APPLICATION_NAME = 'session-payroll'


def get_db_connection(
    host: Optional[str] = None,
    port: Optional[int] = None,
    database: Optional[str] = None,
    user: Optional[str] = None,
    password: Optional[str] = None
):
    """
    Open a connection to the payroll database

    Explicit arguments win over DB_HOST / DB_PORT / DB_NAME / DB_USER /
    DB_PASSWORD from the environment (or .env). DB_CONNECT_TIMEOUT (seconds)
    bounds how long an unreachable server can stall a CLI run.

    Returns:
        psycopg2 connection, tagged with application_name 'session-payroll'

    Raises:
        StoreError: if the server is unreachable or rejects the login
    """
    params = {
        'host': host or os.getenv('DB_HOST', 'localhost'),
        'port': port or int(os.getenv('DB_PORT', '5432')),
        'database': database or os.getenv('DB_NAME', 'payroll_db'),
        'user': user or os.getenv('DB_USER', 'payroll_user'),
    }

    try:
        return psycopg2.connect(
            password=password or os.getenv('DB_PASSWORD', 'payroll_password_local_dev'),
            application_name=APPLICATION_NAME,
            connect_timeout=int(os.getenv('DB_CONNECT_TIMEOUT', '10')),
            **params,
        )
    except psycopg2.Error as e:
        raise StoreError(
            f"Could not connect to {params['database']} at {params['host']}:{params['port']} "
            f"as {params['user']}: {e}"
        ) from e
