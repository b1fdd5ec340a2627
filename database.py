"""
Database URL handling and connectivity checks for the portal.
"""
import logging
import time

from sqlalchemy import text
from sqlalchemy.exc import OperationalError, InterfaceError

DEFAULT_DATABASE_URL = 'sqlite:///proco_portal.db'
PG_DRIVER = 'psycopg'


def normalize_database_url(url: str) -> str:
    """Normalize a database URL for SQLAlchemy.

    Hosting platforms hand out `postgres://` URLs, which SQLAlchemy no longer accepts;
    plain `postgresql://` URLs are pinned to the psycopg (v3) driver.
    """
    if not isinstance(url, str) or not url.strip():
        return DEFAULT_DATABASE_URL
    url = url.strip()
    if url.startswith('postgres://'):
        url = url.replace('postgres://', 'postgresql://', 1)
    if url.startswith('postgresql://'):
        return url.replace('postgresql://', f'postgresql+{PG_DRIVER}://', 1)
    return url


def wait_for_db(engine, seconds: int = 20) -> bool:
    """Try to connect to the DB for up to `seconds`. Returns True if reachable, False otherwise."""
    start = time.time()
    last_err = None
    while time.time() - start < seconds:
        try:
            with engine.connect() as conn:
                conn.execute(text('SELECT 1'))
                return True
        except (OperationalError, InterfaceError) as e:
            last_err = e
            time.sleep(1.0)
    if last_err:
        logging.warning('[DB WAIT] DB not reachable after %ss: %s', seconds, last_err)
    return False
