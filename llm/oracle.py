"""
Text oracle backed by Vertex AI.

The oracle is a best-effort helper: every call returns an OracleResult
(success payload or failure reason) and never raises for network, quota,
timeout or response-shape problems. Callers pick between the oracle answer
and their own deterministic rules.
"""
from __future__ import annotations
import json
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Any, Dict

from pydantic import ValidationError

from core.config import AppConfig, config as default_config
from core.logger import get_logger
from llm.prompts import PROMPT_BUILDERS
from models.oracle import (
    AGENT_NAMES,
    CategorizationPayload,
    InsightsPayload,
    OracleFailure,
    OracleResult,
    OracleSuccess,
)

log = get_logger("llm/oracle")

MAX_OUTPUT_TOKENS = 1024


def _extract_json_from_response(text: str) -> str:
    """
    Extract JSON from LLM response, handling markdown code blocks.

    Args:
        text: Raw LLM response text

    Returns:
        Cleaned JSON string
    """
    text = text.strip()

    # Remove markdown code blocks if present
    if text.startswith("```"):
        # Find the first newline after ```
        start = text.find('\n')
        if start != -1:
            text = text[start + 1:]
        # Remove trailing ```
        if text.endswith("```"):
            text = text[:-3]
        text = text.strip()

    # Remove "json" language identifier if present
    if text.startswith("json\n"):
        text = text[5:]

    return text.strip()


def parse_oracle_text(agent: str, text: str | None) -> OracleResult:
    """
    Normalize a raw oracle response into one canonical payload.

    Observed shapes:
        categorization-agent: bare label, JSON string, {"category": "..."}
        insights-agent: JSON array, {"insights": [...]}, plain prose (one insight)

    Anything else becomes an OracleFailure.
    """
    cleaned = _extract_json_from_response(text or "")
    if not cleaned:
        return OracleFailure(agent=agent, reason="empty response")

    try:
        data: Any = json.loads(cleaned)
    except json.JSONDecodeError:
        data = cleaned

    try:
        if agent == "categorization-agent":
            if isinstance(data, dict) and "category" in data:
                return OracleSuccess(agent=agent, payload=CategorizationPayload(category=data["category"]))
            if isinstance(data, str):
                return OracleSuccess(agent=agent, payload=CategorizationPayload(category=data))
        elif agent == "insights-agent":
            if isinstance(data, dict) and "insights" in data:
                return OracleSuccess(agent=agent, payload=InsightsPayload(insights=data["insights"]))
            if isinstance(data, list):
                return OracleSuccess(agent=agent, payload=InsightsPayload(insights=data))
            if isinstance(data, str):
                return OracleSuccess(agent=agent, payload=InsightsPayload(insights=[data]))
    except ValidationError as e:
        return OracleFailure(agent=agent, reason=f"invalid payload: {e.errors()[0].get('msg', e)}")

    return OracleFailure(agent=agent, reason=f"unexpected response shape: {type(data).__name__}")


class TextOracle:
    """
    Capability interface for the external text-generation collaborator.

    Implementations must return an OracleResult for every call.
    """

    def invoke(self, agent: str, payload: Dict[str, Any]) -> OracleResult:
        raise NotImplementedError(f"{self.__class__.__name__}.invoke() must be implemented")


class UnconfiguredTextOracle(TextOracle):
    """Stand-in used when no oracle is configured; always fails fast."""

    def invoke(self, agent: str, payload: Dict[str, Any]) -> OracleResult:
        log.debug(f"Text oracle not configured; {agent} falls back to rules")
        return OracleFailure(agent=agent, reason="oracle not configured", configured=False)


class VertexTextOracle(TextOracle):
    """Single-attempt Vertex AI Gemini call bounded by ``oracle_timeout_s``."""

    def __init__(self, cfg: AppConfig | None = None, model: Any = None):
        self.cfg = cfg or default_config
        self._model = model

    def _get_model(self):
        if self._model is None:
            from google.cloud import aiplatform
            from vertexai.generative_models import GenerativeModel

            log.info(f"Initializing Vertex AI: project={self.cfg.gcp_project_id}, location={self.cfg.gcp_location}")
            aiplatform.init(project=self.cfg.gcp_project_id, location=self.cfg.gcp_location)
            self._model = GenerativeModel(self.cfg.vertex_model_genai)
        return self._model

    def _generate(self, prompt: str) -> str:
        resp = self._get_model().generate_content(
            [prompt],
            generation_config={
                "temperature": 0.0,  # Deterministic output
                "max_output_tokens": MAX_OUTPUT_TOKENS,
            },
        )
        return (resp.text or "").strip()

    def invoke(self, agent: str, payload: Dict[str, Any]) -> OracleResult:
        if agent not in AGENT_NAMES:
            raise ValueError(f"Unknown oracle agent: {agent}")

        prompt = PROMPT_BUILDERS[agent](payload)
        log.debug(f"Oracle prompt for {agent}: {prompt[:300]}...")

        start_time = time.time()
        executor = ThreadPoolExecutor(max_workers=1)
        future = executor.submit(self._generate, prompt)
        try:
            text = future.result(timeout=self.cfg.oracle_timeout_s)
        except FutureTimeout:
            log.info(f"Oracle {agent} timed out after {self.cfg.oracle_timeout_s:.0f}s")
            return OracleFailure(agent=agent, reason=f"timed out after {self.cfg.oracle_timeout_s:.0f}s")
        except Exception as e:
            log.info(f"Oracle {agent} unavailable: {type(e).__name__}: {e}")
            return OracleFailure(agent=agent, reason=f"{type(e).__name__}: {e}")
        finally:
            # Never wait on a hung call; the worker thread is abandoned
            executor.shutdown(wait=False, cancel_futures=True)

        elapsed = time.time() - start_time
        result = parse_oracle_text(agent, text)
        if isinstance(result, OracleFailure):
            log.warning(f"Oracle {agent} returned an unusable response: {result.reason}")
        else:
            log.info(f"Oracle {agent} answered in {elapsed:.2f}s")
        return result


def build_text_oracle(cfg: AppConfig | None = None) -> TextOracle:
    """Vertex-backed oracle when GCP is configured and enabled, else the unconfigured stand-in."""
    cfg = cfg or default_config
    if cfg.oracle_configured:
        return VertexTextOracle(cfg)
    log.info("Text oracle disabled or GCP_PROJECT_ID not set; using rule-based fallbacks")
    return UnconfiguredTextOracle()
