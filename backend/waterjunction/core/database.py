"""
PostgreSQL connections for repositories and scripts

Repositories open one connection per call with get_db_connection_dict()
and close it in a finally block. The *_with_retry variants ping the
server first and back off on OperationalError; the admin dashboard and
the migration script use them.

Author: Water Junction
Date: 2025-06-02
"""
import time
import logging

import psycopg2
from psycopg2.extras import RealDictCursor

from .config import settings


logger = logging.getLogger(__name__)


def _database_url() -> str:
    if not settings.DATABASE_URL:
        raise Exception("DATABASE_URL not configured")
    return settings.DATABASE_URL


def get_db_connection():
    """Connection whose cursors return tuples"""
    return psycopg2.connect(_database_url())


def get_db_connection_dict():
    """
    Connection whose cursors return dict rows (RealDictCursor)

    Example:
        conn = get_db_connection_dict()
        cursor = conn.cursor()
        cursor.execute("SELECT id, name FROM products WHERE is_active")
        rows = cursor.fetchall()  # [{'id': 1, 'name': ...}, ...]
        cursor.close()
        conn.close()
    """
    return psycopg2.connect(_database_url(), cursor_factory=RealDictCursor)


def _retry(connect, max_retries: int, retry_delay: float):
    _database_url()

    for attempt in range(1, max_retries + 1):
        try:
            conn = connect()
            cursor = conn.cursor()
            cursor.execute("SELECT 1")
            cursor.close()
            if attempt > 1:
                logger.info(f"Database connected on attempt {attempt}/{max_retries}")
            return conn

        except psycopg2.OperationalError as e:
            logger.warning(f"Database connection attempt {attempt}/{max_retries} failed: {e}")
            if attempt == max_retries:
                logger.error(f"Giving up after {max_retries} connection attempts")
                raise
            delay = retry_delay * (2 ** (attempt - 1))
            time.sleep(delay)


def get_db_connection_with_retry(max_retries=3, retry_delay=1.0):
    """
    get_db_connection() with exponential backoff

    Args:
        max_retries: Connection attempts before giving up
        retry_delay: Seconds before the second attempt, doubled each time after

    Raises:
        psycopg2.OperationalError: From the last attempt
    """
    return _retry(get_db_connection, max_retries, retry_delay)


def get_db_connection_dict_with_retry(max_retries=3, retry_delay=1.0):
    """Dict-row variant of get_db_connection_with_retry"""
    return _retry(get_db_connection_dict, max_retries, retry_delay)


def like_pattern(term: str) -> str:
    """
    Substring pattern for ILIKE ... ESCAPE '\\' with the user's % and _
    matched literally
    """
    escaped = term.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')
    return f"%{escaped}%"
