"""
Repository provenance analysis

Pipeline stages that estimate how much of a repository was AI-assisted:
- Locator Parser: validates a GitHub URL into owner/name
- Retrying Fetcher: backoff and response classification for every HTTP call
- Prompt Assembler: renders gathered metadata into the classification prompt
- Result Interpreter: turns the completion into a bounded AnalysisResult

The network-facing stages live in services/ and the driver in
provenance.pipeline.
"""

from .interpreter import interpret, interpret_completion
from .locator import RepositoryLocator, parse_locator
from .prompt import assemble_prompt
from .retry import RetryPolicy, with_retry
from .schemas import AnalysisResult, RepositorySnapshot

__all__ = [
    "interpret",
    "interpret_completion",
    "RepositoryLocator",
    "parse_locator",
    "assemble_prompt",
    "RetryPolicy",
    "with_retry",
    "AnalysisResult",
    "RepositorySnapshot",
]
