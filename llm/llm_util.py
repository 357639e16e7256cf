"""
Tiered access to Gemini chat models.

Work is routed to one of two tiers: a cheap model for coarse yes/no filtering
and a capable model for profile building and fine-grained scoring.
"""

import time
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Union

from langchain_core.messages import HumanMessage
from langchain_core.prompts import PromptTemplate
from langchain_google_genai import ChatGoogleGenerativeAI

from util.logging_util import log_llm_interaction, setup_logger

logger = setup_logger(__name__)


class ModelTier(Enum):
    CHEAP = "cheap"
    CAPABLE = "capable"


class InferenceError(Exception):
    """A model call failed at the transport level (timeout, network, quota)."""

    def __init__(self, tier: ModelTier, message: str):
        super().__init__(f"{tier.value} inference failed: {message}")
        self.tier = tier


def render_prompt(template_path: Union[str, Path], params: dict) -> str:
    """
    Renders a Jinja2 prompt template file with the given parameters.

    Args:
        template_path: Path to the Jinja2 template file.
        params: A dictionary of parameters to populate the template.

    Returns:
        The rendered prompt text.
    """
    with open(template_path, "r") as f:
        template_content = f.read()

    prompt = PromptTemplate.from_template(template_content, template_format="jinja2")
    return prompt.format(**params)


def extract_response_text(response_content) -> str:
    """Flatten a chat model's message content into plain text."""
    # Gemini can return content as a list of parts, extract the text
    if isinstance(response_content, list):
        text_parts = []
        for part in response_content:
            if isinstance(part, str):
                text_parts.append(part)
            elif isinstance(part, dict) and "text" in part:
                text_parts.append(part.get("text", ""))
        return "".join(text_parts)
    return response_content or ""


class GeminiInferenceClient:
    """Submits prompts to a named tier and returns the model's text."""

    def __init__(
        self,
        api_key: str,
        model_names: Dict[ModelTier, str],
        timeout_seconds: float = 30.0,
        temperature: float = 0.1,
    ):
        self.api_key = api_key
        self.model_names = model_names
        self.timeout_seconds = timeout_seconds
        self.temperature = temperature
        self._models: Dict[ModelTier, ChatGoogleGenerativeAI] = {}

    def model_name(self, tier: ModelTier) -> str:
        return self.model_names[tier]

    def _get_model(self, tier: ModelTier) -> ChatGoogleGenerativeAI:
        llm: Optional[ChatGoogleGenerativeAI] = self._models.get(tier)
        if llm is None:
            # Retries are owned by the calling component's attempt budget
            llm = ChatGoogleGenerativeAI(
                model=self.model_name(tier),
                google_api_key=self.api_key,
                temperature=self.temperature,
                timeout=self.timeout_seconds,
                max_retries=0,
            )
            self._models[tier] = llm
        return llm

    def complete(self, tier: ModelTier, prompt: str) -> str:
        """
        Sends a single-turn prompt to the model for the given tier.

        Raises:
            InferenceError: on timeout or any transport/provider failure.
        """
        start_time = time.time()
        llm = self._get_model(tier)

        try:
            response = llm.invoke([HumanMessage(content=prompt)])
        except Exception as e:
            logger.error(f"{tier.value} model call failed: {e}")
            raise InferenceError(tier, str(e)) from e

        response_content = extract_response_text(response.content)

        duration_ms = (time.time() - start_time) * 1000
        log_llm_interaction(logger, tier.value, self.model_name(tier), prompt, response_content, duration_ms)

        return response_content
