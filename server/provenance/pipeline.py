"""
Provenance Pipeline

Parse -> gather (parallel) -> assemble -> infer -> interpret.
Only an invalid locator or a failed inference call aborts a run; every other
problem degrades the snapshot or the result.
"""

import logging
from enum import Enum

import httpx

from config import Settings
from services.github import GitHubClient
from services.inference import InferenceClient

from .interpreter import interpret_completion
from .locator import parse_locator
from .prompt import assemble_prompt
from .schemas import AnalysisResult

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    PARSING = "parsing"
    GATHERING = "gathering"
    ASSEMBLING = "assembling"
    INFERRING = "inferring"
    INTERPRETING = "interpreting"
    DONE = "done"


class ProvenancePipeline:
    """
    Runs one analysis per call to analyze(). Holds configuration only, so a
    single instance can serve concurrent requests.

    `transport`, `sleep` and `rng` exist for tests: a mock httpx transport,
    a replacement for asyncio.sleep, and a jitter source.
    """

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None, sleep=None, rng=None):
        self.settings = settings
        self.transport = transport
        self.sleep = sleep
        self.rng = rng

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self.transport,
            timeout=self.settings.request_timeout,
            follow_redirects=True,
        )

    async def analyze(self, repo_url: str) -> AnalysisResult:
        logger.info(f"[{Stage.PARSING.value}] {repo_url}")
        locator = parse_locator(repo_url)

        async with self._client() as client:
            logger.info(f"[{Stage.GATHERING.value}] {locator.full_name}")
            github = GitHubClient(client, self.settings, sleep=self.sleep, rng=self.rng)
            snapshot = await github.gather(locator)

            logger.info(f"[{Stage.ASSEMBLING.value}] {locator.full_name}")
            prompt = assemble_prompt(locator, snapshot)

            logger.info(f"[{Stage.INFERRING.value}] {locator.full_name} ({len(prompt)} chars)")
            inference = InferenceClient(client, self.settings, sleep=self.sleep, rng=self.rng)
            completion = await inference.classify(prompt)

        logger.info(f"[{Stage.INTERPRETING.value}] {locator.full_name}")
        interpretation = interpret_completion(completion)

        result = interpretation.result
        logger.info(
            f"[{Stage.DONE.value}] {locator.full_name}: VCI {result.vci_score}, "
            f"confidence {result.confidence} ({interpretation.source})"
        )
        return result
