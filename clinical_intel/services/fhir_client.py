"""FHIR R4 client for reading a patient's recent clinical picture.

Fetches three things for a patient from a public FHIR R4 server (HAPI FHIR by
default): the Patient resource itself, active Condition resources, and the
five most recent Observation resources.

The patient read is mandatory; without it there is nothing to summarize. The
condition and observation searches are best effort: a failed search is logged
and treated as an empty result.
"""

import asyncio
import logging
from typing import Any
from urllib.parse import quote

import httpx

from clinical_intel.models.clinical import (
    ConditionEntry,
    ObservationEntry,
    PatientBundle,
    PatientRecord,
)

logger = logging.getLogger(__name__)

FHIR_HEADERS = {
    "Accept": "application/fhir+json",
}

OBSERVATION_LIMIT = 5


class FHIRClientError(Exception):
    """Raised when a patient cannot be read from the FHIR server."""


def _extract_display(codeable_concept: dict | None) -> str:
    """Extract human-readable text from a FHIR CodeableConcept.

    Prefers the concept's own ``text``, then the first coding ``display``.
    """
    if not codeable_concept:
        return "Unknown"
    if codeable_concept.get("text"):
        return codeable_concept["text"]
    for coding in codeable_concept.get("coding", []):
        if coding.get("display"):
            return coding["display"]
    return "Unknown"


def _extract_entries(bundle: dict | None) -> list[dict]:
    """Extract resource entries from a FHIR Bundle."""
    if not bundle or bundle.get("resourceType") != "Bundle":
        return []
    return [e["resource"] for e in bundle.get("entry", []) if "resource" in e]


def parse_patient(resource: dict[str, Any], patient_id: str) -> PatientRecord:
    """Parse a Patient resource, tolerating missing or malformed name and birth date."""
    names = resource.get("name")
    given: list[str] = []
    family = ""
    if isinstance(names, list) and names and isinstance(names[0], dict):
        primary = names[0]
        raw_given = primary.get("given")
        if isinstance(raw_given, list):
            given = [str(part) for part in raw_given if part]
        elif raw_given:
            given = [str(raw_given)]
        family = str(primary.get("family") or "")
        if not given and not family and primary.get("text"):
            family = str(primary["text"])
    birth_date = resource.get("birthDate")
    return PatientRecord(
        id=str(resource.get("id") or patient_id),
        given=given,
        family=family,
        birth_date=str(birth_date) if birth_date else None,
    )


def parse_conditions(conditions: list[dict]) -> list[ConditionEntry]:
    """Parse Condition resources into condition descriptions, in server order."""
    results = []
    for cond in conditions:
        if isinstance(cond, dict) and cond.get("resourceType") == "Condition":
            results.append(ConditionEntry(description=_extract_display(cond.get("code"))))
    return results


def parse_observations(observations: list[dict]) -> list[ObservationEntry]:
    """Parse Observation resources into numeric or coded observation entries."""
    results = []
    for obs in observations:
        if not isinstance(obs, dict) or obs.get("resourceType") != "Observation":
            continue
        label = _extract_display(obs.get("code"))
        quantity = obs.get("valueQuantity")
        if isinstance(quantity, dict):
            results.append(ObservationEntry(
                label=label,
                quantity_value=quantity.get("value"),
                unit=quantity.get("unit") or quantity.get("code"),
                effective=obs.get("effectiveDateTime") or (obs.get("effectivePeriod") or {}).get("start"),
            ))
        elif obs.get("valueCodeableConcept"):
            results.append(ObservationEntry(
                label=label,
                coded_text=_extract_display(obs["valueCodeableConcept"]),
            ))
        elif obs.get("valueString"):
            results.append(ObservationEntry(label=label, coded_text=obs["valueString"]))
        else:
            results.append(ObservationEntry(label=label))
    return results


class FHIRClient:
    """Reads patient data from one FHIR R4 server over a shared httpx client."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout, headers=FHIR_HEADERS)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get_json(self, path: str, params: dict[str, str] | None = None) -> dict:
        resp = await self._client.get(
            f"{self.base_url}/{path}",
            params=params,
            headers=FHIR_HEADERS,
        )
        resp.raise_for_status()
        return resp.json()

    async def read_patient(self, patient_id: str) -> PatientRecord:
        try:
            resource = await self._get_json(f"Patient/{quote(patient_id, safe='')}")
        except httpx.HTTPStatusError as e:
            raise FHIRClientError(
                f"FHIR server returned HTTP {e.response.status_code} for Patient/{patient_id}"
            ) from e
        except httpx.TimeoutException as e:
            raise FHIRClientError(f"FHIR server timed out reading Patient/{patient_id}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise FHIRClientError(f"FHIR read of Patient/{patient_id} failed: {e}") from e

        if not isinstance(resource, dict) or resource.get("resourceType") != "Patient":
            raise FHIRClientError(f"FHIR server returned no Patient resource for {patient_id}")
        try:
            return parse_patient(resource, patient_id)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise FHIRClientError(f"Unreadable Patient resource for {patient_id}: {e}") from e

    async def search_conditions(self, patient_id: str) -> list[ConditionEntry]:
        """Search active Condition resources for a patient."""
        bundle = await self._get_json(
            "Condition",
            params={"patient": patient_id, "clinical-status": "active"},
        )
        return parse_conditions(_extract_entries(bundle))

    async def search_observations(self, patient_id: str) -> list[ObservationEntry]:
        """Search the most recent Observation resources for a patient."""
        bundle = await self._get_json(
            "Observation",
            params={"patient": patient_id, "_sort": "-date", "_count": str(OBSERVATION_LIMIT)},
        )
        return parse_observations(_extract_entries(bundle))[:OBSERVATION_LIMIT]

    async def fetch_patient_bundle(self, patient_id: str) -> PatientBundle:
        """Fetch a patient with their active conditions and recent observations.

        Raises:
            FHIRClientError: if the Patient resource cannot be read.
        """
        logger.info("Reading FHIR patient %s from %s", patient_id, self.base_url)
        patient = await self.read_patient(patient_id)

        conditions, observations = await asyncio.gather(
            self.search_conditions(patient.id),
            self.search_observations(patient.id),
            return_exceptions=True,
        )
        if isinstance(conditions, BaseException):
            logger.warning("Failed to fetch conditions for patient %s: %s", patient_id, conditions)
            conditions = []
        if isinstance(observations, BaseException):
            logger.warning("Failed to fetch observations for patient %s: %s", patient_id, observations)
            observations = []

        return PatientBundle(patient=patient, conditions=conditions, observations=observations)
