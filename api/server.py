"""
FastAPI server for the Prompt Workbench.

Provides endpoints for:
  - Prompt analysis with generated stress tests
  - Simulated conversations with the Dify agent under test
  - Grading an agent answer against the ideal answer
  - n8n workflow synthesis from a free-text description

Every failure is answered with ``{"error": "<localized message>"}`` and the
status code of the WorkbenchError behind it.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from workbench.errors import BadRequest, WorkbenchError
from workbench.messages import resolve_locale
from workbench.pipelines import Workbench
from workbench.settings import load_pipeline_settings

from . import config
from .llm import DifyClient, GeminiClient
from .schema import AnalyzeRequest, ConversationRequest, EvaluateRequest, WorkflowRequest

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Prompt Workbench API",
    description="Analyse agent system prompts, stress-test the agent and synthesize n8n workflows",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_workbench = None


def get_workbench() -> Workbench:
    """Clients and pipeline settings, built on first use."""
    global _workbench
    if _workbench is None:
        _workbench = Workbench(
            llm=GeminiClient.from_config(),
            agent=DifyClient.from_config(),
            settings=load_pipeline_settings(config.PIPELINE_CONFIG),
        )
    return _workbench


def _locale(request: Request) -> str:
    return resolve_locale(request.headers.get("accept-language"), config.LOCALE)


async def _guarded(label: str, coro, internal_key: str = "internal_error"):
    """Await a pipeline; anything that is not a WorkbenchError becomes a 500."""
    try:
        return await coro
    except WorkbenchError:
        raise
    except Exception as e:
        logger.error(f"{label} error: {e}", exc_info=True)
        raise WorkbenchError(internal_key, detail=str(e)) from e


# ─── Error Handlers ──────────────────────────────────────────────────────────

@app.exception_handler(WorkbenchError)
async def workbench_error_handler(request: Request, exc: WorkbenchError):
    if exc.status_code >= 500:
        logger.error(f"{request.url.path} failed: {exc.__class__.__name__}: {exc}")
    else:
        logger.warning(f"{request.url.path} rejected: {exc.__class__.__name__}: {exc}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload(_locale(request)))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    error = BadRequest("invalid_request", detail=str(exc))
    logger.warning(f"{request.url.path} rejected: {exc}")
    return JSONResponse(status_code=error.status_code, content=error.to_payload(_locale(request)))


# ─── Health Check ─────────────────────────────────────────────────────────────

@app.get("/api/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "ok",
        "model": config.GEMINI_MODEL,
    }


# ─── Pipeline Endpoints ──────────────────────────────────────────────────────

@app.post("/api/analyze")
async def analyze(request: AnalyzeRequest):
    """Score a system prompt and return stress tests for it."""
    result = await _guarded("Analyze", get_workbench().analyze(request.prompt))
    return result.to_wire()


@app.post("/api/dify/conversation")
async def conversation(request: ConversationRequest):
    """Ask the agent under test one question."""
    reply = await _guarded(
        "Conversation",
        get_workbench().simulate(
            request.user_prompt,
            request.message,
            conversation_id=request.conversation_id,
            user_id=request.user_id,
        ),
    )
    return reply.model_dump()


@app.post("/api/evaluate-response")
async def evaluate_response(request: EvaluateRequest):
    """Grade an agent answer against the ideal answer."""
    evaluation = await _guarded(
        "Evaluate",
        get_workbench().evaluate(
            request.user_prompt,
            request.question,
            request.ideal_answer,
            request.ai_response,
        ),
        internal_key="internal_error_evaluation",
    )
    return evaluation.model_dump()


@app.post("/api/n8n")
async def n8n(request: WorkflowRequest):
    """Synthesize and normalize an n8n workflow from a description."""
    result = await _guarded("Workflow", get_workbench().synthesize(request.query))
    return result.to_wire()


# ─── Entry Point ──────────────────────────────────────────────────────────────

def start():
    """Entry point for running the server."""
    import uvicorn

    logger.info(f"Starting Prompt Workbench API on {config.API_HOST}:{config.API_PORT}")
    logger.info(f"Model: {config.GEMINI_MODEL}")
    uvicorn.run(
        "api.server:app",
        host=config.API_HOST,
        port=config.API_PORT,
        reload=True,
    )


if __name__ == "__main__":
    start()
