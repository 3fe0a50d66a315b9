"""Generation parameter mapping (OpenAI request fields -> Gemini config)."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from google.genai import types

logger = logging.getLogger("gemproxy")

# Gemini only supports 1 candidate for now.
CANDIDATE_COUNT = 1


def build_generation_config(
    *,
    max_tokens: int = 0,
    stop: Optional[Sequence[str]] = None,
    temperature: float = 0.0,
    top_p: float = 0.0,
    is_multimodal: bool = False,
) -> types.GenerateContentConfig:
    """Translate OpenAI generation controls into a Gemini config.

    Zero values are left unset so that Gemini applies its own defaults.
    The stop list is always passed through, even when empty. The requested
    candidate count is ignored: only single-candidate generation is supported.
    """
    stop_sequences = list(stop or [])

    config = types.GenerateContentConfig(
        candidate_count=CANDIDATE_COUNT,
        max_output_tokens=max_tokens or None,
        stop_sequences=stop_sequences,
        temperature=temperature or None,
        top_p=top_p or None,
    )

    logger.info(
        "parameters candidate_count=%d max_output_tokens=%d stop_sequences=%r "
        "temperature=%s top_p=%s is_multimodal=%s",
        CANDIDATE_COUNT,
        max_tokens,
        " ".join(stop_sequences),
        temperature,
        top_p,
        is_multimodal,
    )

    return config
