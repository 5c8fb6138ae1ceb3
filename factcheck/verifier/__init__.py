"""Verifier package — fetch/verify scheduling, LLM checks and grounding."""

from factcheck.verifier.engine import VerificationEngine, batches
from factcheck.verifier.grounding import Figure, extract_figures, grounding_failure
from factcheck.verifier.models import VerificationResult

__all__ = [
    "VerificationEngine",
    "batches",
    "Figure",
    "extract_figures",
    "grounding_failure",
    "VerificationResult",
]
