"""
Result Interpreter

Turns the untrusted completion text into an AnalysisResult. Never raises:
anything that cannot be read as a verdict becomes the neutral fallback.
"""

import json
import logging

from pydantic import ValidationError

from .schemas import AnalysisResult, Indicators, Interpretation

logger = logging.getLogger(__name__)

# Neutral midpoint with low confidence when the completion is unusable
FALLBACK_VCI_SCORE = 50
FALLBACK_CONFIDENCE = 30
FALLBACK_ANALYSIS = "Unable to perform detailed analysis. This appears to be a standard repository."


def fallback_result() -> AnalysisResult:
    return AnalysisResult(
        vci_score=FALLBACK_VCI_SCORE,
        analysis=FALLBACK_ANALYSIS,
        confidence=FALLBACK_CONFIDENCE,
        indicators=Indicators(),
    )


def _strip_code_fence(text: str) -> str:
    # Models often wrap JSON in markdown code blocks
    if "```json" in text:
        return text.split("```json", 1)[1].split("```", 1)[0].strip()
    if "```" in text:
        return text.split("```", 1)[1].split("```", 1)[0].strip()
    return text


def interpret_completion(raw: str) -> Interpretation:
    """Parse a completion, tagging whether the verdict was parsed or substituted."""
    try:
        text = _strip_code_fence((raw or "").strip())
        data = json.loads(text)
    except (TypeError, ValueError, RecursionError) as e:
        logger.warning(f"Completion is not valid JSON, using fallback: {e}")
        return Interpretation(result=fallback_result(), source="fallback")

    if not isinstance(data, dict):
        logger.warning(f"Completion is JSON {type(data).__name__}, not an object, using fallback")
        return Interpretation(result=fallback_result(), source="fallback")

    if data.get("vciScore") is None or data.get("confidence") is None:
        logger.warning("Completion is missing vciScore or confidence, using fallback")
        return Interpretation(result=fallback_result(), source="fallback")

    analysis = data.get("analysis")
    if not isinstance(analysis, str) or not analysis.strip():
        analysis = FALLBACK_ANALYSIS

    try:
        result = AnalysisResult(
            vci_score=data["vciScore"],
            analysis=analysis.strip(),
            confidence=data["confidence"],
            indicators=data.get("indicators"),
        )
    except ValidationError as e:
        logger.warning(f"Completion has unusable fields, using fallback: {e.error_count()} errors")
        return Interpretation(result=fallback_result(), source="fallback")
    except OverflowError as e:
        logger.warning(f"Completion has an out-of-range number, using fallback: {e}")
        return Interpretation(result=fallback_result(), source="fallback")

    return Interpretation(result=result, source="parsed")


def interpret(raw: str) -> AnalysisResult:
    """Total function from completion text to a well-formed AnalysisResult."""
    return interpret_completion(raw).result
