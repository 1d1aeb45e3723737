"""Summary tools: local discharge notes and FHIR records, summarized by an LLM.

Each tool returns a plain dict that is safe to serialize as JSON. Expected
failures never raise past this module; they are mapped to a fallback message
through ``FALLBACK_MESSAGES``.
"""

import enum
import logging
from typing import Any

from clinical_intel.config import (
    DATABASE_PATH,
    FHIR_BASE_URL,
    FHIR_TIMEOUT,
    GUIDELINES_PATH,
    SEED_DEMO_NOTES,
)
from clinical_intel.models.summary import SummaryFallback, SummaryResult
from clinical_intel.services.fhir_client import FHIRClient, FHIRClientError
from clinical_intel.services.guidelines import GuidelineCatalog, GuidelineNotFoundError
from clinical_intel.services.llm import SummarizationError, SummarizationGateway, build_backend
from clinical_intel.services.narrative import build_narrative
from clinical_intel.services.note_store import NoteStore

logger = logging.getLogger(__name__)

LOCAL_SOURCE = "local store"
REMOTE_SOURCE = "remote API"

DISCHARGE_NOTE_PROMPT = (
    "Summarize the following clinical discharge note into a concise paragraph:\n\n{text}"
)
FHIR_DATA_PROMPT = (
    "Summarize the following clinical data into a concise, one-paragraph clinical summary:\n\n{text}"
)


class FailureKind(enum.Enum):
    NOTE_NOT_FOUND = "note_not_found"
    NOTE_SUMMARY_FAILED = "note_summary_failed"
    FHIR_UNAVAILABLE = "fhir_unavailable"
    FHIR_SUMMARY_FAILED = "fhir_summary_failed"


FALLBACK_MESSAGES: dict[FailureKind, str] = {
    FailureKind.NOTE_NOT_FOUND: "No discharge summary found for patient ID {patient_id} in the local DB.",
    FailureKind.NOTE_SUMMARY_FAILED: (
        "Found a discharge note for patient ID {patient_id} but AI summary generation failed."
    ),
    FailureKind.FHIR_UNAVAILABLE: (
        "Patient with ID '{patient_id}' not found or an error occurred on the FHIR server."
    ),
    FailureKind.FHIR_SUMMARY_FAILED: (
        "Retrieved FHIR data for patient '{patient_id}' but AI summary generation failed."
    ),
}


def fallback(kind: FailureKind, patient_id: str) -> dict[str, Any]:
    message = FALLBACK_MESSAGES[kind].format(patient_id=patient_id)
    return SummaryFallback(summary=message).model_dump()


def _result(result: SummaryResult) -> dict[str, Any]:
    return result.model_dump(by_alias=True, exclude_none=True)


class ClinicalToolkit:
    """The services behind the MCP tools, constructed once per process.

    The note store owns a single aiosqlite connection; the FHIR client and the
    summarization gateway are shared read-only across concurrent calls.
    """

    def __init__(
        self,
        note_store: NoteStore,
        fhir_client: FHIRClient,
        gateway: SummarizationGateway,
        guidelines: GuidelineCatalog,
    ) -> None:
        self.note_store = note_store
        self.fhir_client = fhir_client
        self.gateway = gateway
        self.guidelines = guidelines

    @classmethod
    def from_config(cls) -> "ClinicalToolkit":
        """Build the toolkit from environment configuration.

        Configuration errors (unknown or unusable LLM provider, broken
        guideline file) raise here and abort startup.
        """
        return cls(
            note_store=NoteStore(DATABASE_PATH, seed_demo_notes=SEED_DEMO_NOTES),
            fhir_client=FHIRClient(FHIR_BASE_URL, timeout=FHIR_TIMEOUT),
            gateway=SummarizationGateway(build_backend()),
            guidelines=GuidelineCatalog.from_path(GUIDELINES_PATH),
        )

    async def start(self) -> None:
        await self.note_store.open()
        logger.info(
            "Toolkit ready (llm=%s, fhir=%s, guidelines=%d)",
            self.gateway.backend.name, self.fhir_client.base_url, len(self.guidelines),
        )

    async def close(self) -> None:
        await self.note_store.close()
        await self.fhir_client.aclose()
        await self.gateway.aclose()

    async def get_summary_from_db(self, patient_id: str) -> dict[str, Any]:
        """Summarize the most recent local discharge note for a patient."""
        note = await self.note_store.fetch_most_recent_discharge_note(patient_id)
        if note is None:
            return fallback(FailureKind.NOTE_NOT_FOUND, patient_id)

        logger.info("Summarizing discharge note for patient %s", patient_id)
        try:
            summary = await self.gateway.summarize(DISCHARGE_NOTE_PROMPT.format(text=note.text))
        except SummarizationError:
            return fallback(FailureKind.NOTE_SUMMARY_FAILED, patient_id)

        return _result(SummaryResult(source=LOCAL_SOURCE, patient_id=patient_id, ai_summary=summary))

    async def get_summary_from_fhir(self, patient_id: str) -> dict[str, Any]:
        """Summarize a patient's FHIR demographics, active conditions and recent observations."""
        try:
            bundle = await self.fhir_client.fetch_patient_bundle(patient_id)
        except FHIRClientError as exc:
            logger.warning("FHIR lookup failed for patient %s: %s", patient_id, exc)
            return fallback(FailureKind.FHIR_UNAVAILABLE, patient_id)

        narrative = build_narrative(bundle.patient, bundle.conditions, bundle.observations)

        logger.info("Summarizing FHIR record for patient %s", patient_id)
        try:
            summary = await self.gateway.summarize(FHIR_DATA_PROMPT.format(text=narrative))
        except SummarizationError:
            return fallback(FailureKind.FHIR_SUMMARY_FAILED, patient_id)

        return _result(SummaryResult(
            source=REMOTE_SOURCE,
            patient_id=bundle.patient.id,
            patient_name=bundle.patient.full_name,
            ai_summary=summary,
        ))

    def search_guidelines(self, topic: str) -> list[dict[str, Any]] | dict[str, str]:
        try:
            records = self.guidelines.search(topic)
        except GuidelineNotFoundError as exc:
            return {"error": str(exc)}
        return [record.model_dump(by_alias=True, exclude_none=True) for record in records]
