import logging

import httpx

from config import Settings
from errors import InferenceError
from provenance.prompt import SYSTEM_PROMPT
from provenance.retry import Absent, Exhausted, Rejected, with_retry

logger = logging.getLogger(__name__)

TEMPERATURE = 0.3
MAX_TOKENS = 1000


class InferenceClient:
    """
    Chat-completions client for the classification call.

    Talks to any OpenAI-compatible endpoint (Gemini's by default). This call
    is load-bearing: if it cannot produce a completion the analysis fails.
    """

    def __init__(self, client: httpx.AsyncClient, settings: Settings, sleep=None, rng=None):
        self.client = client
        self.settings = settings
        self.endpoint = settings.inference_url
        self.headers = {
            "Authorization": f"Bearer {settings.inference_api_key}",
            "Content-Type": "application/json",
        }
        self.sleep = sleep
        self.rng = rng

    def build_payload(self, prompt: str) -> dict:
        return {
            "model": self.settings.inference_model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": TEMPERATURE,
            "max_tokens": MAX_TOKENS,
        }

    async def classify(self, prompt: str) -> str:
        """Submit the prompt and return the raw completion text. Raises InferenceError."""
        payload = self.build_payload(prompt)
        outcome = await with_retry(
            lambda: self.client.post(self.endpoint, headers=self.headers, json=payload),
            self.settings.inference_policy,
            label="inference",
            sleep=self.sleep,
            rng=self.rng,
        )

        if isinstance(outcome, Exhausted):
            raise InferenceError(
                f"Inference service unavailable: {outcome.describe()}",
                status=outcome.last_status,
            )
        if isinstance(outcome, (Absent, Rejected)):
            raise InferenceError(
                f"Inference request rejected with HTTP {outcome.status}",
                status=outcome.status,
            )

        try:
            data = outcome.response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError):
            logger.error(f"Inference response has no completion: {outcome.response.text[:500]}")
            raise InferenceError("No response from inference service", code="empty_completion") from None

        if not isinstance(content, str) or not content.strip():
            raise InferenceError("No response from inference service", code="empty_completion")

        logger.info(f"Inference completed after {outcome.attempts} attempt(s)")
        return content
