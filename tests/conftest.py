import os

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# In-memory DB, dummy LLM and no external API keys for tests
os.environ["ANTHROPIC_API_KEY"] = ""
os.environ["OPENAI_API_KEY"] = ""
os.environ["LLM_PROVIDER"] = "dummy"
os.environ["DATABASE_PATH"] = ":memory:"
os.environ["SEED_DEMO_NOTES"] = "false"
os.environ["GUIDELINES_PATH"] = ""
os.environ["FHIR_BASE_URL"] = "http://fhir.test/baseR4"

from clinical_intel.database import INSERT_NOTE
from clinical_intel.main import create_app
from clinical_intel.services.fhir_client import FHIRClient
from clinical_intel.services.guidelines import GuidelineCatalog
from clinical_intel.services.llm import EchoBackend, SummarizationGateway
from clinical_intel.services.note_store import NoteStore
from clinical_intel.services.summary import ClinicalToolkit

FHIR_BASE_URL = "http://fhir.test/baseR4"


class FakeFHIRServer:
    """In-process FHIR R4 server driven through httpx.MockTransport."""

    def __init__(self) -> None:
        self.patients: dict[str, dict] = {}
        self.conditions: dict[str, list[dict]] = {}
        self.observations: dict[str, list[dict]] = {}
        self.failing: set[str] = set()
        self.requests: list[httpx.Request] = []

    @staticmethod
    def _bundle(resources: list[dict]) -> dict:
        return {
            "resourceType": "Bundle",
            "type": "searchset",
            "total": len(resources),
            "entry": [{"resource": r} for r in resources],
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/baseR4/")
        resource_type = path.split("/", 1)[0]
        if resource_type in self.failing:
            return httpx.Response(500, json={"resourceType": "OperationOutcome"})

        if resource_type == "Patient":
            patient_id = path.split("/", 1)[1] if "/" in path else ""
            if patient_id not in self.patients:
                return httpx.Response(404, json={
                    "resourceType": "OperationOutcome",
                    "issue": [{"severity": "error", "code": "processing"}],
                })
            return httpx.Response(200, json=self.patients[patient_id])

        patient_id = request.url.params.get("patient", "")
        if resource_type == "Condition":
            return httpx.Response(200, json=self._bundle(self.conditions.get(patient_id, [])))
        if resource_type == "Observation":
            return httpx.Response(200, json=self._bundle(self.observations.get(patient_id, [])))
        return httpx.Response(404)


@pytest.fixture
def fhir_server():
    return FakeFHIRServer()


@pytest_asyncio.fixture
async def fhir_client(fhir_server):
    client = FHIRClient(
        FHIR_BASE_URL,
        client=httpx.AsyncClient(transport=httpx.MockTransport(fhir_server.handler)),
    )
    yield client
    await client.aclose()


@pytest_asyncio.fixture
async def note_store():
    """Provide a fresh in-memory notes database for each test."""
    store = NoteStore(":memory:")
    await store.open()
    yield store
    await store.close()


@pytest_asyncio.fixture
async def db(note_store):
    return await note_store.open()


@pytest.fixture
def toolkit(note_store, fhir_client):
    return ClinicalToolkit(
        note_store=note_store,
        fhir_client=fhir_client,
        gateway=SummarizationGateway(EchoBackend()),
        guidelines=GuidelineCatalog(),
    )


@pytest.fixture
def app(toolkit):
    return create_app(toolkit)


@pytest_asyncio.fixture
async def async_client(app):
    """Provide an async httpx client for HTTP endpoint tests."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def add_note(db):
    """Insert a NOTEEVENTS row into the test database."""

    async def _add(subject_id, category, text, chartdate="2150-01-01"):
        await db.execute(INSERT_NOTE, (subject_id, None, chartdate, category, None, text))
        await db.commit()

    return _add
