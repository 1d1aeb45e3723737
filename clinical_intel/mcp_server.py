"""MCP tool registrations for the clinical intelligence server.

Tools reply with the result object rendered as indented JSON text. Failures
are part of that object (``summary`` or ``error`` keys), never raised.
"""

import json
import logging
from typing import Annotated

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from clinical_intel.config import HOST
from clinical_intel.services.summary import ClinicalToolkit

logger = logging.getLogger(__name__)

SERVER_NAME = "Clinical-Intelligence-Server"


def create_mcp_server(toolkit: ClinicalToolkit) -> FastMCP:
    mcp = FastMCP(
        name=SERVER_NAME,
        instructions=(
            "Clinical summaries from a local MIMIC-III notes database and a live FHIR "
            "server, plus a clinical practice guideline lookup."
        ),
        host=HOST,
        stateless_http=True,
        json_response=True,
        streamable_http_path="/mcp",
    )

    @mcp.tool(
        name="getSummaryFromDB",
        description=(
            "Retrieves an AI-generated summary from a patient's clinical notes "
            "in the local MIMIC-III database."
        ),
    )
    async def get_summary_from_db(
        patientId: Annotated[str, Field(description="The numeric subject ID for the patient (e.g., '109')")],  # noqa: N803
    ) -> str:
        logger.info("Tool getSummaryFromDB called for patient %s", patientId)
        result = await toolkit.get_summary_from_db(patientId)
        return json.dumps(result, indent=2)

    @mcp.tool(
        name="getSummaryFromFHIR",
        description=(
            "Retrieves an AI-generated summary from a patient's data on a live, public FHIR server."
        ),
    )
    async def get_summary_from_fhir(
        patientId: Annotated[str, Field(description="The patient's resource ID on the FHIR server (e.g., '1282007')")],  # noqa: N803
    ) -> str:
        logger.info("Tool getSummaryFromFHIR called for patient %s", patientId)
        result = await toolkit.get_summary_from_fhir(patientId)
        return json.dumps(result, indent=2)

    @mcp.tool(
        name="searchGuidelines",
        description="Searches for clinical practice guidelines based on a medical topic.",
    )
    async def search_guidelines(
        topic: Annotated[str, Field(description="The clinical topic to search for (e.g., 'hypertension')")],
    ) -> str:
        logger.info("Tool searchGuidelines called for topic %r", topic)
        return json.dumps(toolkit.search_guidelines(topic), indent=2)

    return mcp
