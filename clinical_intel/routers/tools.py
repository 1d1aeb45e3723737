import logging

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from clinical_intel.services.summary import ClinicalToolkit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["tools"])


def _toolkit(request: Request) -> ClinicalToolkit:
    return request.app.state.toolkit


def _server_error(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc)})


@router.get("/patients/{patient_id}/summary/db")
async def summary_from_db(patient_id: str, request: Request):
    """AI summary of the patient's most recent discharge note in the local database."""
    try:
        return await _toolkit(request).get_summary_from_db(patient_id)
    except Exception as exc:
        logger.exception("Local summary route failed for patient %s", patient_id)
        return _server_error(exc)


@router.get("/patients/{patient_id}/summary/fhir")
async def summary_from_fhir(patient_id: str, request: Request):
    """AI summary of the patient's record on the FHIR server."""
    try:
        return await _toolkit(request).get_summary_from_fhir(patient_id)
    except Exception as exc:
        logger.exception("FHIR summary route failed for patient %s", patient_id)
        return _server_error(exc)


@router.get("/guidelines")
async def guidelines(request: Request, topic: str = Query(..., description="Clinical topic, e.g. 'hypertension'")):
    """Clinical practice guidelines whose topic contains ``topic``.

    Returns a list, or ``{"error": ...}`` when nothing matches.
    """
    try:
        return _toolkit(request).search_guidelines(topic)
    except Exception as exc:
        logger.exception("Guideline route failed for topic %r", topic)
        return _server_error(exc)
