"""
Request bodies for the Prompt Workbench API.

Field names match what the front end already sends (camelCase, plus the
Portuguese stress-test keys). Every field is optional at the schema level:
missing or blank input is reported by the pipelines as a localized 400
instead of FastAPI's generic 422 validation payload.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AnalyzeRequest(BaseModel):
    """Request body for POST /api/analyze."""
    prompt: Optional[str] = Field(default=None, description="System prompt to analyse")


class ConversationRequest(BaseModel):
    """Request body for POST /api/dify/conversation."""
    model_config = ConfigDict(populate_by_name=True)

    user_prompt: Optional[str] = Field(default=None, alias="userPrompt", description="System prompt under test")
    message: Optional[str] = Field(default=None, description="Question sent to the agent")
    conversation_id: Optional[str] = Field(default=None, description="Continue an existing conversation")
    user_id: Optional[str] = Field(default=None, description="Agent-side user identifier")


class EvaluateRequest(BaseModel):
    """Request body for POST /api/evaluate-response."""
    model_config = ConfigDict(populate_by_name=True)

    user_prompt: Optional[str] = Field(default=None, alias="userPrompt")
    question: Optional[str] = Field(default=None, alias="perguntaCapciosa")
    ideal_answer: Optional[str] = Field(default=None, alias="respostaIdeal")
    ai_response: Optional[str] = Field(default=None, alias="aiResponse")


class WorkflowRequest(BaseModel):
    """Request body for POST /api/n8n."""
    query: Optional[str] = Field(default=None, description="Free-text description of the automation")
