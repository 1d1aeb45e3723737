"""Local clinical notes store (MIMIC-III NOTEEVENTS).

Looks up the most recent discharge summary for a patient. Missing rows and
storage errors are both reported as ``None``; callers cannot tell them apart.
"""

import asyncio
import logging

import aiosqlite

from clinical_intel.database import connect_db, fetch_one, init_db
from clinical_intel.models.clinical import ClinicalNote

logger = logging.getLogger(__name__)

DISCHARGE_CATEGORY = "Discharge summary"

DISCHARGE_NOTE_QUERY = """
    SELECT CATEGORY, TEXT FROM NOTEEVENTS
    WHERE SUBJECT_ID = ? AND CATEGORY = ?
    ORDER BY CHARTDATE DESC
    LIMIT 1
"""


class NoteStore:
    def __init__(
        self,
        path: str,
        seed_demo_notes: bool = False,
        conn: aiosqlite.Connection | None = None,
    ) -> None:
        self.path = path
        self.seed_demo_notes = seed_demo_notes
        self._conn = conn
        self._lock = asyncio.Lock()

    async def open(self) -> aiosqlite.Connection:
        async with self._lock:
            if self._conn is None:
                conn = await connect_db(self.path)
                await init_db(conn, seed_demo_notes=self.seed_demo_notes)
                self._conn = conn
        return self._conn

    async def close(self) -> None:
        if self._conn is not None:
            await self._conn.close()
            self._conn = None

    async def fetch_most_recent_discharge_note(self, patient_id: str) -> ClinicalNote | None:
        try:
            conn = self._conn if self._conn is not None else await self.open()
            row = await fetch_one(conn, DISCHARGE_NOTE_QUERY, (patient_id, DISCHARGE_CATEGORY))
        except Exception as exc:
            logger.warning("Note lookup failed for patient %s: %s", patient_id, exc)
            return None

        if row is None:
            logger.info("No discharge note for patient %s", patient_id)
            return None
        return ClinicalNote(category=row["CATEGORY"], text=row["TEXT"] or "")
