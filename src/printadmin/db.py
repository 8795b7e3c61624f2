# db.py
import sqlite3
import time
from pathlib import Path
from typing import Any, Dict, Optional

def get_conn(db_path: str | Path) -> sqlite3.Connection:
    conn = sqlite3.connect(Path(db_path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn

def init_db(db_path: str | Path) -> None:
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_conn(db_path)
    cur = conn.cursor()

    cur.execute("PRAGMA journal_mode=WAL;")
    cur.execute("PRAGMA synchronous=NORMAL;")

    # Admin sessions, one row per session id
    cur.execute("""
    CREATE TABLE IF NOT EXISTS admin_sessions (
        session_id    TEXT PRIMARY KEY,
        principal     TEXT,
        created_at    INTEGER NOT NULL,
        last_activity INTEGER NOT NULL,
        csrf_token    TEXT,
        login_time    INTEGER,
        login_ip      TEXT,
        intended_url  TEXT,
        rotated_to    TEXT
    );""")
    cur.execute("CREATE INDEX IF NOT EXISTS idx_admin_sessions_last_activity ON admin_sessions(last_activity);")

    # Site settings (admin credentials, Telegram notification config, ...)
    cur.execute("""
    CREATE TABLE IF NOT EXISTS settings (
        key        TEXT PRIMARY KEY,
        value      TEXT,
        updated_at INTEGER NOT NULL
    );""")

    conn.commit()
    conn.close()

def fetchone_dict(row: Optional[sqlite3.Row]) -> Optional[Dict[str, Any]]:
    return dict(row) if row else None

def get_setting(db_path: str | Path, key: str) -> Optional[str]:
    conn = get_conn(db_path)
    cur = conn.cursor()
    cur.execute("SELECT value FROM settings WHERE key=?;", (key,))
    row = cur.fetchone()
    conn.close()
    return row["value"] if row else None

def set_settings(db_path: str | Path, values: Dict[str, Optional[str]]) -> None:
    conn = get_conn(db_path)
    cur = conn.cursor()
    n = int(time.time())
    cur.executemany("""
        INSERT INTO settings(key, value, updated_at) VALUES(?,?,?)
        ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at
    """, [(k, v, n) for k, v in values.items()])
    conn.commit()
    conn.close()

def list_settings(db_path: str | Path) -> Dict[str, Optional[str]]:
    conn = get_conn(db_path)
    cur = conn.cursor()
    cur.execute("SELECT key, value FROM settings ORDER BY key;")
    rows = cur.fetchall()
    conn.close()
    return {row["key"]: row["value"] for row in rows}
