"""
Pipeline settings: templates, generation parameters and safety thresholds.

Every pipeline call receives a PipelineSettings instance explicitly instead
of reading module constants, so tests can inject their own templates and a
deployment can tune parameters from a YAML file:

    templates:
      evaluation: |
        ...custom rubric with {userPrompt} {perguntaCapciosa} {respostaIdeal} {aiResponse}
    generation:
      evaluation:
        temperature: 0.1
    safety_threshold: BLOCK_ONLY_HIGH
"""
import logging
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, List, Optional

import yaml

from workbench import templates

logger = logging.getLogger(__name__)

HARM_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)
DEFAULT_SAFETY_THRESHOLD = "BLOCK_MEDIUM_AND_ABOVE"

STAGES = ("analysis", "stress_tests", "evaluation", "workflow")


@dataclass
class SafetySetting:
    category: str
    threshold: str = DEFAULT_SAFETY_THRESHOLD

    def to_dict(self) -> Dict[str, str]:
        return {"category": self.category, "threshold": self.threshold}


def default_safety_settings(threshold: str = DEFAULT_SAFETY_THRESHOLD) -> List[SafetySetting]:
    return [SafetySetting(category, threshold) for category in HARM_CATEGORIES]


@dataclass
class GenerationSettings:
    """Per-call generation parameters (the ``generationConfig`` block)."""

    temperature: float
    max_output_tokens: int
    top_k: int = 32
    top_p: float = 1.0
    response_mime_type: str = "application/json"
    stop_sequences: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "response_mime_type": self.response_mime_type,
            "temperature": self.temperature,
            "topK": self.top_k,
            "topP": self.top_p,
            "maxOutputTokens": self.max_output_tokens,
            "stopSequences": list(self.stop_sequences),
        }


@dataclass
class PipelineSettings:
    """Everything a pipeline needs besides its HTTP clients."""

    analysis_template: str = templates.ANALYSIS_TEMPLATE
    stress_test_template: str = templates.STRESS_TEST_TEMPLATE
    evaluation_template: str = templates.EVALUATION_TEMPLATE
    workflow_template: str = templates.WORKFLOW_TEMPLATE

    # Low temperatures favour determinism; workflow generation is the
    # strictest because the graph must conform structurally.
    analysis: GenerationSettings = field(default_factory=lambda: GenerationSettings(0.4, 4096))
    stress_tests: GenerationSettings = field(default_factory=lambda: GenerationSettings(0.4, 8192))
    evaluation: GenerationSettings = field(default_factory=lambda: GenerationSettings(0.2, 500))
    workflow: GenerationSettings = field(default_factory=lambda: GenerationSettings(0.1, 8192))

    safety: List[SafetySetting] = field(default_factory=default_safety_settings)

    def safety_payload(self) -> List[Dict[str, str]]:
        return [s.to_dict() for s in self.safety]

    @classmethod
    def from_yaml(cls, yaml_path: str) -> "PipelineSettings":
        """Load overrides from a YAML file"""
        with open(yaml_path, "r") as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PipelineSettings":
        """Apply a mapping of overrides on top of the defaults."""
        settings = cls()
        if not isinstance(data, dict):
            raise ValueError("pipeline config must be a mapping")

        for stage, text in (data.get("templates") or {}).items():
            if stage not in STAGES:
                logger.warning(f"Ignoring template override for unknown stage '{stage}'")
                continue
            attr = "stress_test_template" if stage == "stress_tests" else f"{stage}_template"
            setattr(settings, attr, str(text))

        known = {f.name for f in fields(GenerationSettings)}
        for stage, overrides in (data.get("generation") or {}).items():
            if stage not in STAGES:
                logger.warning(f"Ignoring generation override for unknown stage '{stage}'")
                continue
            unknown = set(overrides) - known
            if unknown:
                logger.warning(f"Ignoring unknown generation keys for {stage}: {sorted(unknown)}")
            clean = {k: v for k, v in overrides.items() if k in known}
            setattr(settings, stage, replace(getattr(settings, stage), **clean))

        if data.get("safety"):
            settings.safety = [
                SafetySetting(item["category"], item.get("threshold", DEFAULT_SAFETY_THRESHOLD))
                for item in data["safety"]
            ]
        elif data.get("safety_threshold"):
            settings.safety = default_safety_settings(data["safety_threshold"])

        return settings


def load_pipeline_settings(path: Optional[str] = None) -> PipelineSettings:
    """Defaults, or defaults plus the YAML overrides at ``path``."""
    if not path:
        return PipelineSettings()
    logger.info(f"Loading pipeline overrides from {path}")
    return PipelineSettings.from_yaml(path)
