import logging

import aiosqlite

logger = logging.getLogger(__name__)


async def connect_db(path: str) -> aiosqlite.Connection:
    conn = await aiosqlite.connect(path)
    conn.row_factory = aiosqlite.Row
    logger.info("Connected to SQLite database at %s", path)
    return conn


async def fetch_one(conn: aiosqlite.Connection, query: str, params: tuple | list = ()):
    async with conn.execute(query, params) as cursor:
        return await cursor.fetchone()


async def fetch_all(conn: aiosqlite.Connection, query: str, params: tuple | list = ()):
    async with conn.execute(query, params) as cursor:
        return await cursor.fetchall()


# Subset of the MIMIC-III NOTEEVENTS layout. A real MIMIC-III demo database
# already carries this table, so creation is a no-op there.
SQLITE_SCHEMA = """
    CREATE TABLE IF NOT EXISTS NOTEEVENTS (
        ROW_ID INTEGER PRIMARY KEY AUTOINCREMENT,
        SUBJECT_ID INTEGER NOT NULL,
        HADM_ID INTEGER,
        CHARTDATE TEXT,
        CATEGORY TEXT,
        DESCRIPTION TEXT,
        TEXT TEXT
    );

    CREATE INDEX IF NOT EXISTS idx_noteevents_subject_category
        ON NOTEEVENTS (SUBJECT_ID, CATEGORY);
"""

INSERT_NOTE = """INSERT INTO NOTEEVENTS (
    SUBJECT_ID, HADM_ID, CHARTDATE, CATEGORY, DESCRIPTION, TEXT
) VALUES (?, ?, ?, ?, ?, ?)"""

DEMO_NOTES = [
    (
        109,
        172335,
        "2141-09-24",
        "Discharge summary",
        "Report",
        "Patient recovering well after treatment for hypertensive urgency. "
        "Blood pressure controlled on oral lisinopril and amlodipine. "
        "Renal function stable. Discharged home with follow-up in nephrology clinic in two weeks.",
    ),
]


async def init_db(conn: aiosqlite.Connection, seed_demo_notes: bool = False) -> None:
    await conn.executescript(SQLITE_SCHEMA)
    await conn.commit()

    if seed_demo_notes:
        await _seed_demo_notes(conn)


async def _seed_demo_notes(conn: aiosqlite.Connection) -> None:
    """Seed demo discharge notes so the local summary tool works out of the box."""
    subject_ids = [note[0] for note in DEMO_NOTES]
    placeholders = ", ".join("?" for _ in subject_ids)
    existing_rows = await fetch_all(
        conn,
        f"SELECT DISTINCT SUBJECT_ID FROM NOTEEVENTS WHERE SUBJECT_ID IN ({placeholders})",
        subject_ids,
    )
    existing = {row["SUBJECT_ID"] for row in existing_rows}
    notes = [note for note in DEMO_NOTES if note[0] not in existing]
    if not notes:
        return

    await conn.executemany(INSERT_NOTE, notes)
    await conn.commit()
    logger.info("Seeded %d demo discharge note(s)", len(notes))
