"""
Helper functions for Gemini API calls.
"""
import requests
import json
import logging
from typing import Optional
from timeline.core.config import settings
from timeline.core.exceptions import GenerationError

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"


def calculate_gemini_cost(prompt_tokens: int, output_tokens: int, model_name: str = "gemini-2.5-flash") -> float:
    """
    Calculate cost for Gemini API call based on token usage.

    Pricing:
    - flash models: $0.075 per 1M input tokens, $0.30 per 1M output tokens
    - pro models: $0.125 per 1M input tokens, $0.50 per 1M output tokens
    """
    if "pro" in model_name.lower() and "flash" not in model_name.lower():
        input_price_per_million = 0.125
        output_price_per_million = 0.50
    else:
        # Default to flash pricing
        input_price_per_million = 0.075
        output_price_per_million = 0.30

    input_cost = (prompt_tokens / 1_000_000) * input_price_per_million
    output_cost = (output_tokens / 1_000_000) * output_price_per_million

    return input_cost + output_cost


def parse_llm_json(text: str) -> dict:
    """
    Parse the JSON object in an LLM reply.

    Accepts plain JSON, JSON wrapped in a markdown code block, or JSON embedded
    in surrounding prose (the outermost {...} slice is used).

    Raises:
        GenerationError: If no JSON object can be recovered
    """
    text = (text or "").strip()
    if text.startswith('```'):
        # Remove markdown code blocks
        lines = text.split('\n')
        text = '\n'.join(lines[1:])
        if text.rstrip().endswith('```'):
            text = text.rstrip()[:-3]
        text = text.strip()

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end <= start:
        raise GenerationError(f"Gemini API: no JSON found in output: {text[:200]}")

    try:
        return json.loads(text[start:end + 1])
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse LLM JSON response: {e}")
        logger.error(f"Response text: {text[:500]}")
        raise GenerationError(f"LLM returned invalid JSON: {str(e)}")


def call_gemini_api(
    prompt: str,
    system_instruction: Optional[str] = None,
    response_schema: Optional[dict] = None,
) -> tuple[dict, dict]:
    """
    Call Gemini API and return its JSON reply.

    Args:
        prompt: The prompt to send to the LLM
        system_instruction: Optional system instruction
        response_schema: Optional structured-output schema; the reply is then
            requested as application/json

    Returns:
        Tuple of (parsed JSON response from the LLM, token usage dict with keys:
                  'prompt_tokens', 'output_tokens', 'total_tokens', 'cost_usd', 'model_name')

    Raises:
        GenerationError: If the key is missing, the request fails or the response is invalid
    """
    api_key = settings.google_gemini_api_key
    if not api_key:
        raise GenerationError("Google Gemini API key not configured")

    model_name = settings.gemini_model
    base_url = f"{GEMINI_BASE_URL}/{model_name}:generateContent"

    payload = {
        "contents": [{
            "role": "user",
            "parts": [{
                "text": prompt
            }]
        }],
        "generationConfig": {
            "temperature": 0.4,
            "topK": 40,
            "topP": 0.95,
            "maxOutputTokens": 4096,
        }
    }

    if response_schema:
        payload["generationConfig"]["responseMimeType"] = "application/json"
        payload["generationConfig"]["responseSchema"] = response_schema

    # Add system instruction if provided
    if system_instruction:
        payload["systemInstruction"] = {
            "parts": [{
                "text": system_instruction
            }]
        }

    try:
        response = requests.post(
            base_url,
            params={"key": api_key},
            json=payload,
            headers={"Content-Type": "application/json"},
            timeout=settings.gemini_timeout_seconds
        )
        response.raise_for_status()
        data = response.json()
    except requests.exceptions.RequestException as e:
        error_msg = f"Gemini API request failed: {str(e)}"
        if getattr(e, 'response', None) is not None:
            try:
                error_data = e.response.json()
                error_msg += f" - {error_data}"
            except ValueError:
                error_msg += f" - Status: {e.response.status_code}"
        logger.error(error_msg)
        raise GenerationError(error_msg) from e

    # Extract token usage from usageMetadata
    usage_metadata = data.get('usageMetadata', {})
    prompt_tokens = usage_metadata.get('promptTokenCount', 0)
    output_tokens = usage_metadata.get('candidatesTokenCount', 0)
    total_tokens = usage_metadata.get('totalTokenCount', prompt_tokens + output_tokens)

    token_usage = {
        'prompt_tokens': prompt_tokens,
        'output_tokens': output_tokens,
        'total_tokens': total_tokens,
        'cost_usd': calculate_gemini_cost(prompt_tokens, output_tokens, model_name),
        'model_name': model_name
    }

    candidates = data.get('candidates') or []
    if not candidates:
        raise GenerationError("LLM response missing candidates")

    content = candidates[0].get('content') or {}
    parts = content.get('parts') or []
    if not parts:
        finish_reason = candidates[0].get('finishReason', 'UNKNOWN')
        raise GenerationError(f"LLM response missing content or parts (finishReason={finish_reason})")

    text = "".join(part.get('text', '') for part in parts).strip()
    if not text:
        raise GenerationError("Gemini API: response without text")

    logger.info(f"Gemini call: model={model_name}, tokens={total_tokens}, cost=${token_usage['cost_usd']:.6f}")
    return parse_llm_json(text), token_usage
