"""
Prompt Workbench - Pipelines

The orchestration layer between the API endpoints and the external
services. Four pipelines:

  1. analyze     - score a system prompt, then generate stress tests for it
  2. evaluate    - grade one simulated answer against the ideal answer
  3. simulate    - ask the target agent a stress-test question
  4. synthesize  - turn a free-text automation description into an n8n
                   workflow, normalize it, and stress-test any agent
                   prompt embedded in it

Primary calls are fatal: their WorkbenchError reaches the caller.
Stress-test generation is enrichment only; it degrades to an empty list
and never fails the surrounding pipeline.

Clients are passed in explicitly (api.llm.GeminiClient / DifyClient or any
object with the same methods) together with a PipelineSettings instance.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from workbench.errors import BadRequest, MalformedUpstreamJSON, WorkflowSynthesisFailed
from workbench.graph import find_prompt
from workbench.models import (
    AnalyzeResult,
    ConversationReply,
    Evaluation,
    PromptAnalysis,
    StressTest,
    WorkflowResult,
)
from workbench.normalizer import normalize_graph
from workbench.settings import PipelineSettings

logger = logging.getLogger(__name__)

_EVALUATION_PLACEHOLDER = re.compile(r"\{(userPrompt|perguntaCapciosa|respostaIdeal|aiResponse)\}")


def _blank(value: Optional[str]) -> bool:
    return not (value or "").strip()


# ─── Stress Tests (shared, never raises) ─────────────────────────────────────


def parse_stress_tests(data: Dict[str, Any]) -> List[StressTest]:
    """Valid entries of ``data["stress_tests"]``; malformed entries are skipped."""
    items = data.get("stress_tests") if isinstance(data, dict) else None
    if not isinstance(items, list):
        return []
    tests = []
    for item in items:
        try:
            tests.append(StressTest.model_validate(item))
        except ValidationError:
            logger.warning(f"Skipping malformed stress test entry: {item!r:.200}")
    return tests


async def generate_stress_tests(llm, target_prompt: str, settings: PipelineSettings) -> List[StressTest]:
    """Adversarial questions for ``target_prompt``. Any failure yields []."""
    try:
        data = await llm.generate_json(
            settings.stress_test_template + target_prompt,
            settings.stress_tests,
            settings.safety_payload(),
        )
    except Exception as e:
        logger.error(f"Stress test generation failed, continuing without: {e}")
        return []
    return parse_stress_tests(data)


# ─── Prompt Analysis ─────────────────────────────────────────────────────────


async def analyze(llm, user_prompt: str, settings: Optional[PipelineSettings] = None) -> AnalyzeResult:
    """Score ``user_prompt`` and attach stress tests for it."""
    settings = settings or PipelineSettings()
    llm.ensure_configured()
    if _blank(user_prompt):
        raise BadRequest("missing_prompt")

    data = await llm.generate_json(
        settings.analysis_template + user_prompt,
        settings.analysis,
        settings.safety_payload(),
        empty_key="empty_analysis",
        context="analysis",
    )
    try:
        analysis = PromptAnalysis.model_validate(data)
    except ValidationError as e:
        raise MalformedUpstreamJSON(detail=f"analysis does not match schema: {e}") from e

    stress_tests = await generate_stress_tests(llm, user_prompt, settings)
    logger.info(
        f"Prompt analysed: overall={analysis.overall_score} stress_tests={len(stress_tests)}"
    )
    return AnalyzeResult(analysis=analysis, stress_tests=stress_tests)


# ─── Response Evaluation ─────────────────────────────────────────────────────


def render_evaluation_prompt(
    template: str,
    user_prompt: str,
    question: str,
    ideal_answer: str,
    actual_answer: str,
) -> str:
    """Fill the four rubric placeholders in a single pass."""
    values = {
        "userPrompt": user_prompt,
        "perguntaCapciosa": question,
        "respostaIdeal": ideal_answer,
        "aiResponse": actual_answer,
    }
    return _EVALUATION_PLACEHOLDER.sub(lambda m: values[m.group(1)], template)


async def evaluate(
    llm,
    user_prompt: str,
    question: str,
    ideal_answer: str,
    actual_answer: str,
    settings: Optional[PipelineSettings] = None,
) -> Evaluation:
    settings = settings or PipelineSettings()
    llm.ensure_configured()
    if any(_blank(v) for v in (user_prompt, question, ideal_answer, actual_answer)):
        raise BadRequest("missing_evaluation_fields")

    prompt = render_evaluation_prompt(
        settings.evaluation_template, user_prompt, question, ideal_answer, actual_answer
    )
    data = await llm.generate_json(
        prompt,
        settings.evaluation,
        settings.safety_payload(),
        empty_key="empty_evaluation",
        malformed_key="malformed_evaluation",
        context="evaluation",
    )
    try:
        return Evaluation.model_validate(data)
    except ValidationError as e:
        raise MalformedUpstreamJSON("malformed_evaluation", detail=str(e)) from e


# ─── Conversation Simulation ─────────────────────────────────────────────────


async def simulate(
    agent,
    user_prompt: str,
    message: str,
    conversation_id: Optional[str] = None,
    user_id: Optional[str] = None,
) -> ConversationReply:
    agent.ensure_configured()
    if _blank(user_prompt) or _blank(message):
        raise BadRequest("missing_conversation_fields")
    return await agent.chat(
        message,
        user_prompt=user_prompt,
        conversation_id=conversation_id,
        user_id=user_id,
    )


# ─── Workflow Synthesis ──────────────────────────────────────────────────────


async def synthesize(llm, description: str, settings: Optional[PipelineSettings] = None) -> WorkflowResult:
    """
    Generate an n8n workflow for ``description``.

    Steps: generate -> normalize -> extract the embedded agent prompt from
    the generation tree -> stress-test that prompt (best effort).
    """
    settings = settings or PipelineSettings()
    llm.ensure_configured()
    if _blank(description):
        raise BadRequest("missing_query")

    raw = await llm.generate_json(
        settings.workflow_template + description,
        settings.workflow,
        settings.safety_payload(),
        empty_key="empty_workflow",
        error_cls=WorkflowSynthesisFailed,
    )

    normalized = normalize_graph(raw)
    for note in normalized.diagnostics:
        logger.info(f"Workflow normalization: {note}")

    # Branch and ui fields only exist in the generation tree
    extracted_prompt = find_prompt(raw.get("nodes"))
    stress_tests: List[StressTest] = []
    if extracted_prompt:
        logger.info(f"Found embedded prompt ({len(extracted_prompt)} chars), generating stress tests")
        stress_tests = await generate_stress_tests(llm, extracted_prompt, settings)

    return WorkflowResult(
        result=normalized.graph,
        stress_tests=stress_tests,
        diagnostics=normalized.diagnostics,
    )


# ─── Facade ──────────────────────────────────────────────────────────────────


@dataclass
class Workbench:
    """The four pipelines bound to one set of clients and settings."""

    llm: Any
    agent: Any
    settings: PipelineSettings = field(default_factory=PipelineSettings)

    async def analyze(self, user_prompt: str) -> AnalyzeResult:
        return await analyze(self.llm, user_prompt, self.settings)

    async def evaluate(self, user_prompt: str, question: str, ideal_answer: str, actual_answer: str) -> Evaluation:
        return await evaluate(self.llm, user_prompt, question, ideal_answer, actual_answer, self.settings)

    async def simulate(
        self,
        user_prompt: str,
        message: str,
        conversation_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> ConversationReply:
        return await simulate(self.agent, user_prompt, message, conversation_id, user_id)

    async def synthesize(self, description: str) -> WorkflowResult:
        return await synthesize(self.llm, description, self.settings)
