# Prompt Workbench
# Prompt analysis, adversarial stress tests and n8n workflow synthesis

from workbench.errors import (
    BadRequest,
    EmptyResponse,
    MalformedUpstreamJSON,
    QuotaExceeded,
    RateLimited,
    Unconfigured,
    UpstreamError,
    WorkbenchError,
    WorkflowSynthesisFailed,
)
from workbench.models import (
    AnalysisSection,
    AnalyzeResult,
    ConversationReply,
    Evaluation,
    PromptAnalysis,
    StressTest,
    WorkflowResult,
)
from workbench.normalizer import NormalizationResult, normalize_graph
from workbench.pipelines import Workbench
from workbench.runner import StressTestRunner
from workbench.settings import PipelineSettings, load_pipeline_settings

__version__ = "0.1.0"

__all__ = [
    "BadRequest",
    "EmptyResponse",
    "MalformedUpstreamJSON",
    "QuotaExceeded",
    "RateLimited",
    "Unconfigured",
    "UpstreamError",
    "WorkbenchError",
    "WorkflowSynthesisFailed",
    "AnalysisSection",
    "AnalyzeResult",
    "ConversationReply",
    "Evaluation",
    "PromptAnalysis",
    "StressTest",
    "WorkflowResult",
    "NormalizationResult",
    "normalize_graph",
    "Workbench",
    "StressTestRunner",
    "PipelineSettings",
    "load_pipeline_settings",
]
