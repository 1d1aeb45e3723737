import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from clinical_intel.config import HOST, PORT
from clinical_intel.mcp_server import create_mcp_server
from clinical_intel.routers import tools
from clinical_intel.services.summary import ClinicalToolkit

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(toolkit: ClinicalToolkit | None = None) -> FastAPI:
    toolkit = toolkit or ClinicalToolkit.from_config()
    mcp = create_mcp_server(toolkit)
    mcp_app = mcp.streamable_http_app()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting Clinical Intelligence Server...")
        await toolkit.start()
        try:
            async with mcp.session_manager.run():
                yield
        finally:
            await toolkit.close()
            logger.info("Clinical Intelligence Server shut down")

    app = FastAPI(
        title="Clinical Intelligence MCP Server",
        description=(
            "MCP tools for AI clinical summaries from a local MIMIC-III notes database "
            "and a FHIR R4 server, and a clinical guideline lookup."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.toolkit = toolkit
    app.state.mcp = mcp

    app.include_router(tools.router)

    @app.get("/", response_class=PlainTextResponse)
    async def root():
        return "Clinical Intelligence MCP Server is running."

    # Streamable HTTP transport serves POST /mcp; mounted last so the routes above win
    app.mount("/", mcp_app)
    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host=HOST, port=PORT)
