"""
Vertex AI REST client for structured generation with Gemini models.
"""
import json
import logging
from typing import Optional, Dict, Any, List

import requests

from ..auth import AccessTokenProvider
from ...errors import StructuredGenerationError
from ...config import VERTEX_LOCATION, MODEL_NAME, LLM_TIMEOUT, MAX_OUTPUT_TOKENS

logger = logging.getLogger("llm_client")


class VertexRestClient:
    """REST-based client for Vertex AI Gemini models."""

    def __init__(self,
                 project: str,
                 location: str = VERTEX_LOCATION,
                 model: str = MODEL_NAME,
                 credentials_json: Optional[str] = None,
                 timeout: int = LLM_TIMEOUT,
                 token_provider: Optional[AccessTokenProvider] = None):
        self.project = project
        self.location = location
        self.model = model
        self.base_url = f"https://{self.location}-aiplatform.googleapis.com/v1"
        self.model_resource = f"projects/{self.project}/locations/{self.location}/publishers/google/models/{self.model}"
        self.timeout = timeout
        self.token_provider = token_provider or AccessTokenProvider(credentials_json)

    def generate_content(
        self,
        prompt_text: str,
        temperature: float = 0.0,
        max_output_tokens: int = MAX_OUTPUT_TOKENS,
        system_instruction: Optional[str] = None,
        response_schema: Optional[Dict[str, Any]] = None,
        stop_sequences: Optional[List[str]] = None,
    ) -> str:
        """Generate content using the Vertex AI REST API."""
        url = f"{self.base_url}/{self.model_resource}:generateContent"

        body: Dict[str, Any] = {
            "contents": [
                {
                    "role": "user",
                    "parts": [{"text": prompt_text}],
                }
            ],
            "generationConfig": {
                "temperature": float(temperature),
                "maxOutputTokens": int(max_output_tokens),
            },
        }

        if system_instruction:
            body["systemInstruction"] = {"parts": [{"text": system_instruction}]}
        if response_schema is not None:
            body["generationConfig"]["responseMimeType"] = "application/json"
            body["generationConfig"]["responseSchema"] = response_schema
        if stop_sequences:
            body["generationConfig"]["stopSequences"] = list(stop_sequences)

        headers = {
            "Authorization": f"Bearer {self.token_provider.token()}",
            "Content-Type": "application/json",
        }

        resp = requests.post(url, headers=headers, json=body, timeout=self.timeout)
        if resp.status_code >= 400:
            raise StructuredGenerationError(f"Vertex REST error {resp.status_code}: {resp.text}")

        return self._parse_response_text(resp.json())

    def _parse_response_text(self, resp_json: Dict[str, Any]) -> str:
        """
        Parse response JSON to extract text content.
        Tries Vertex schema first, then falls back to alternatives.
        """
        # Vertex schema: candidates[0].content.parts[*].text
        cands = resp_json.get("candidates") or []
        if cands and isinstance(cands[0], dict):
            content = cands[0].get("content") or {}
            parts = content.get("parts") or []
            texts = [p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)]
            if texts:
                return "".join(texts)
            # Some responses put text directly in content
            if isinstance(content.get("text"), str):
                return content["text"]

        # Direct text fallback
        if isinstance(resp_json.get("text"), str):
            return resp_json["text"]

        block_reason = (resp_json.get("promptFeedback") or {}).get("blockReason")
        if block_reason:
            raise StructuredGenerationError(f"Prompt blocked by model: {block_reason}")
        raise StructuredGenerationError("Model response contained no text")

    @staticmethod
    def _loads_json(text: str) -> Dict[str, Any]:
        """Parse a JSON object, tolerating prose or code fences around it."""
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning("json.loads failed: %s", e)
            start = text.find("{")
            end = text.rfind("}")
            if start == -1 or end <= start:
                raise StructuredGenerationError(f"LLM did not return valid JSON: {text}")
            try:
                parsed = json.loads(text[start:end + 1])
                logger.debug("Parsed JSON from substring successfully")
            except json.JSONDecodeError as e2:
                raise StructuredGenerationError(f"LLM did not return valid JSON: {text}") from e2

        if not isinstance(parsed, dict):
            raise StructuredGenerationError(f"Expected a JSON object, got {type(parsed).__name__}")
        return parsed

    def generate_structured(self,
                            prompt: str,
                            schema: Dict[str, Any],
                            system_instruction: Optional[str] = None) -> Dict[str, Any]:
        """
        Generate a JSON object shaped by ``schema``.

        Args:
            prompt: User prompt text
            schema: Vertex ``responseSchema`` (OpenAPI subset)
            system_instruction: Optional system prompt

        Returns:
            The decoded JSON object

        Raises:
            StructuredGenerationError: On transport failure or unparsable output
        """
        logger.debug("Sending structured prompt to %s...", self.model)

        try:
            text = self.generate_content(
                prompt.strip(),
                temperature=0.0,
                max_output_tokens=MAX_OUTPUT_TOKENS,
                system_instruction=system_instruction,
                response_schema=schema,
            )
        except requests.RequestException as e:
            logger.error("LLM request failed: %s", e)
            raise StructuredGenerationError(f"LLM request failed: {e}") from e

        logger.debug("Raw LLM output: %s", repr(text))
        return self._loads_json(text)
