"""Pydantic models for clinical data read from the notes store and FHIR servers."""

from typing import Any

from pydantic import BaseModel


class ClinicalNote(BaseModel):
    """A single note row from the local NOTEEVENTS table."""

    category: str
    text: str


class PatientRecord(BaseModel):
    """Patient demographics parsed from a FHIR Patient resource."""

    id: str
    given: list[str] = []
    family: str = ""
    birth_date: str | None = None

    @property
    def full_name(self) -> str:
        name = " ".join([*self.given, self.family]).strip()
        return " ".join(name.split()) or "Unknown"


class ConditionEntry(BaseModel):
    description: str


class ObservationEntry(BaseModel):
    """A recent observation.

    Numeric observations carry ``quantity_value`` exactly as the server sent
    it (it may not parse as a number), plus ``unit`` and ``effective``.
    Coded observations carry ``coded_text`` instead.
    """

    label: str
    quantity_value: Any = None
    unit: str | None = None
    effective: str | None = None
    coded_text: str | None = None


class PatientBundle(BaseModel):
    """Everything fetched from a FHIR server for one patient."""

    patient: PatientRecord
    conditions: list[ConditionEntry] = []
    observations: list[ObservationEntry] = []
