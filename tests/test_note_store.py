"""Tests for the notes database and the discharge note lookup."""

from unittest.mock import MagicMock

from clinical_intel.database import DEMO_NOTES, connect_db, fetch_all, fetch_one, init_db
from clinical_intel.services.note_store import NoteStore


async def test_init_creates_noteevents(db):
    rows = await fetch_all(db, "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name")
    tables = [row[0] for row in rows]
    assert "NOTEEVENTS" in tables


async def test_init_is_idempotent(db):
    await init_db(db)
    row = await fetch_one(db, "SELECT COUNT(*) AS cnt FROM NOTEEVENTS")
    assert row["cnt"] == 0


async def test_seed_demo_notes_once():
    db = await connect_db(":memory:")
    try:
        await init_db(db, seed_demo_notes=True)
        await init_db(db, seed_demo_notes=True)
        row = await fetch_one(db, "SELECT COUNT(*) AS cnt FROM NOTEEVENTS WHERE SUBJECT_ID = 109")
        assert row["cnt"] == len(DEMO_NOTES)
    finally:
        await db.close()


async def test_fetch_discharge_note(note_store, add_note):
    await add_note(109, "Discharge summary", "Patient recovering well...")

    note = await note_store.fetch_most_recent_discharge_note("109")

    assert note is not None
    assert note.category == "Discharge summary"
    assert note.text == "Patient recovering well..."


async def test_fetch_most_recent_discharge_note(note_store, add_note):
    await add_note(109, "Discharge summary", "Older admission", chartdate="2140-01-01")
    await add_note(109, "Discharge summary", "Latest admission", chartdate="2141-09-24")
    await add_note(109, "Discharge summary", "Middle admission", chartdate="2140-06-01")

    note = await note_store.fetch_most_recent_discharge_note("109")
    assert note.text == "Latest admission"


async def test_other_categories_ignored(note_store, add_note):
    await add_note(109, "Nursing/other", "Vitals stable overnight")
    await add_note(109, "Radiology", "Chest x-ray clear")

    assert await note_store.fetch_most_recent_discharge_note("109") is None


async def test_other_patients_ignored(note_store, add_note):
    await add_note(110, "Discharge summary", "Different patient")

    assert await note_store.fetch_most_recent_discharge_note("109") is None


async def test_unknown_patient(note_store):
    assert await note_store.fetch_most_recent_discharge_note("999999") is None


async def test_injection_attempt_is_a_plain_value(note_store, add_note):
    await add_note(109, "Discharge summary", "Patient recovering well...")

    assert await note_store.fetch_most_recent_discharge_note("109 OR 1=1") is None


async def test_storage_error_reported_as_missing():
    conn = MagicMock()
    conn.execute = MagicMock(side_effect=RuntimeError("database is locked"))
    store = NoteStore(":memory:", conn=conn)

    assert await store.fetch_most_recent_discharge_note("109") is None


async def test_lazy_open():
    store = NoteStore(":memory:", seed_demo_notes=True)
    try:
        note = await store.fetch_most_recent_discharge_note("109")
        assert note is not None
        assert note.text.startswith("Patient recovering well")
    finally:
        await store.close()
