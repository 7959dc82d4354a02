"""FastAPI lease extraction service.

Accepts a lease PDF, runs the extraction pipeline, and returns the result
for human review. PDFs are processed in-memory only.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, File, Form, UploadFile
from fastapi.responses import JSONResponse

from config import Settings
from model_client import ModelClient, ModelServiceError, ModelServiceUnavailable
from models import DocumentType, PipelineOptions, PipelineOutput
from pipeline import LeasePipeline, PipelineError, was_skipped

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build settings, model clients and the pipeline once at startup."""
    settings = Settings()
    app.state.settings = settings
    app.state.pipeline = None
    app.state.health_client = None
    app.state.clients = []

    if not settings.MODEL_BASE_URL:
        logger.info("Model service not configured (MODEL_BASE_URL is empty), extraction disabled")
    else:
        logger.info("Using model service at %s", settings.MODEL_BASE_URL)
        classification = ModelClient(settings, settings.CLASSIFICATION_MODEL)
        extraction = ModelClient(settings, settings.EXTRACTION_MODEL)
        app.state.clients = [classification, extraction]
        app.state.health_client = extraction
        app.state.pipeline = LeasePipeline(settings, classification, extraction)

        health = await extraction.health()
        if health.get("ready"):
            logger.info("Model service is ready: %s", health)
        else:
            logger.warning("Model service not yet ready: %s", health)

    yield

    for client in app.state.clients:
        await client.aclose()


app = FastAPI(title="Lease Extraction", version="1.0.0", lifespan=lifespan)


@app.post("/api/v1/extract", response_model=PipelineOutput)
async def extract(
    file: UploadFile = File(...),
    document_type: DocumentType | None = Form(None),
    skip_extraction: bool = Form(False),
):
    """Extract the lease fields from an uploaded PDF."""
    pipeline: LeasePipeline | None = getattr(app.state, "pipeline", None)
    if pipeline is None:
        return JSONResponse(
            status_code=503,
            content={"detail": "Lease extraction is not available - no model service configured"},
        )

    filename = file.filename or ""
    if not filename.lower().endswith(".pdf"):
        return JSONResponse(status_code=400, content={"detail": "File must be a PDF"})

    pdf_bytes = await file.read()
    if not pdf_bytes:
        return JSONResponse(status_code=400, content={"detail": "Empty file uploaded"})

    logger.info("Processing extraction: file=%s size=%d bytes", filename, len(pdf_bytes))

    options = PipelineOptions(force_document_type=document_type, skip_extraction=skip_extraction)
    try:
        result = await pipeline.run(pdf_bytes, filename=filename, options=options)
    except PipelineError as e:
        logger.error("Pipeline error for %s: %s", filename, e)
        return JSONResponse(status_code=422, content={"detail": str(e)})
    except (ModelServiceUnavailable, ModelServiceError) as e:
        logger.error("Model service failure for %s: %s", filename, e)
        return JSONResponse(status_code=502, content={"detail": f"Model service failed: {e}"})

    if was_skipped(result):
        return JSONResponse(status_code=422, content={"detail": result.reason, "skipped": True})

    return result


@app.get("/health")
async def health():
    """Return service status and model service availability."""
    pipeline_ready = getattr(app.state, "pipeline", None) is not None
    health_client = getattr(app.state, "health_client", None)
    base = {
        "status": "healthy",
        "model_service_configured": pipeline_ready,
    }

    if health_client is not None:
        base["model_health"] = await health_client.health()

    return base


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=Settings().PORT)
