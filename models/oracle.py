"""Result variants returned by the text oracle."""
from __future__ import annotations
from typing import List, Literal, Union

from pydantic import BaseModel, Field, field_validator

AgentName = Literal["categorization-agent", "insights-agent"]
AGENT_NAMES = ("categorization-agent", "insights-agent")


class CategorizationPayload(BaseModel):
    """Canonical output of the categorization agent."""
    category: str

    @field_validator("category", mode="before")
    @classmethod
    def _strip_label(cls, value):
        if not isinstance(value, str):
            raise ValueError("category must be a string")
        return value.strip().strip("\"'`.").strip()


class InsightsPayload(BaseModel):
    """Canonical output of the insights agent."""
    insights: List[str]

    @field_validator("insights", mode="before")
    @classmethod
    def _strip_items(cls, value):
        if not isinstance(value, list):
            raise ValueError("insights must be a list")
        return [item.strip() if isinstance(item, str) else item for item in value]


class OracleSuccess(BaseModel):
    kind: Literal["success"] = "success"
    agent: AgentName
    payload: Union[CategorizationPayload, InsightsPayload]


class OracleFailure(BaseModel):
    kind: Literal["failure"] = "failure"
    agent: AgentName
    reason: str = Field(..., description="Why the oracle could not answer")
    configured: bool = Field(default=True, description="False when no oracle is configured at all")


OracleResult = Union[OracleSuccess, OracleFailure]
