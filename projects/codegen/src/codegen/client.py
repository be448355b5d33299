"""Client for the remote text-generation service."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any

from jinja2 import TemplateError
from requests import RequestException, post

from codegen.cleaning import clean_code_response
from codegen.config import api_key_from_env, load_config
from codegen.prompts import build_prompt

if TYPE_CHECKING:
    from codegen.types import (
        CodeGenerationRequest,
        CodeGenerationResponse,
        Config,
        ServiceConfig,
    )

logger = getLogger(__name__)

MISSING_KEY_ERROR = (
    "Gemini API key is not configured. "
    "Please set GEMINI_API_KEY in your environment variables."
)
EMPTY_SCHEMA_ERROR = "No tables found in schema. Please add some tables first."
INVALID_SCHEMA_ERROR = "Invalid schema format: tables and edges must be objects."


class ServiceError(Exception):
    """The service answered with an error or an unusable payload."""


def request_body(prompt: str, service: ServiceConfig) -> dict[str, Any]:
    """Build the generateContent payload."""
    return {
        "contents": [{"parts": [{"text": prompt}]}],
        "generationConfig": {
            "temperature": service["temperature"],
            "topK": service["top_k"],
            "topP": service["top_p"],
            "maxOutputTokens": service["max_output_tokens"],
        },
        "safetySettings": [
            {"category": category, "threshold": service["safety_threshold"]}
            for category in service["safety_categories"]
        ],
    }


def extract_text(payload: Any) -> str:  # noqa: ANN401
    """Pull the generated text out of a generateContent response."""
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as err:
        msg = "Invalid response format from Gemini API"
        raise ServiceError(msg) from err
    if not isinstance(text, str):
        msg = "Invalid response format from Gemini API"
        raise ServiceError(msg)
    return text


class CodeGenerator:
    """Generates dialect-specific schema code through the remote service."""

    def __init__(
        self,
        api_key: str | None = None,
        config: Config | None = None,
    ) -> None:
        """Initialize with an API key (default: environment) and settings."""
        self.api_key = api_key if api_key is not None else api_key_from_env()
        self.config = config or load_config()
        if not self.api_key:
            logger.warning(
                "GEMINI_API_KEY environment variable is not set. "
                "AI features will be disabled.",
            )

    def is_configured(self) -> bool:
        """Whether an API key is available."""
        return bool(self.api_key)

    def _call(self, prompt: str) -> str:
        service = self.config["service"]
        response = post(
            service["endpoint"],
            json=request_body(prompt, service),
            headers={
                "Content-Type": "application/json",
                "X-goog-api-key": str(self.api_key),
            },
            timeout=service["timeout"],
        )
        if not response.ok:
            msg = f"API request failed: {response.status_code} {response.reason}"
            raise ServiceError(msg)
        try:
            payload = response.json()
        except ValueError as err:
            msg = "Invalid response format from Gemini API"
            raise ServiceError(msg) from err
        return extract_text(payload)

    def generate_code(self, request: CodeGenerationRequest) -> CodeGenerationResponse:
        """Generate code for the request; failures are returned, never raised."""
        if not self.api_key:
            return {"success": False, "code": "", "error": MISSING_KEY_ERROR}
        if not request["schema"]:
            return {"success": False, "code": "", "error": EMPTY_SCHEMA_ERROR}
        entries = (*request["schema"], *request["edges"])
        if not all(isinstance(entry, dict) for entry in entries):
            return {"success": False, "code": "", "error": INVALID_SCHEMA_ERROR}

        try:
            prompt = build_prompt(request, self.config)
            text = self._call(prompt)
        except KeyError as err:
            logger.error("AI service setting missing: %s", err)  # noqa: TRY400
            return {"success": False, "code": "", "error": f"Missing setting: {err}"}
        except (RequestException, ServiceError, TemplateError, TypeError) as err:
            logger.error("AI code generation failed: %s", err)  # noqa: TRY400
            return {"success": False, "code": "", "error": str(err) or "Unknown error"}

        logger.debug("Generated %d characters of code", len(text))
        return {"success": True, "code": clean_code_response(text)}
