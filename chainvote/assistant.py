"""
assistant.py - AI-generated candidate manifestos and result summaries.

Both helpers always return a string; failures fall back to fixed text.
"""

import logging
from typing import Dict, List, Optional

import google.generativeai as genai

logger = logging.getLogger(__name__)

MANIFESTO_FALLBACK = "Vote for progress and unity!"
SUMMARY_FALLBACK = "Analysis unavailable at this time."

_model = None


def configure(api_key: Optional[str], model_name: str = "gemini-2.5-flash") -> None:
    """Set up the Gemini model. Without a key every call returns its fallback."""
    global _model
    if not api_key:
        logger.warning("GEMINI_API_KEY not set; AI text will use fallbacks.")
        _model = None
        return
    genai.configure(api_key=api_key)
    _model = genai.GenerativeModel(model_name=model_name)


def _generate(prompt: str, fallback: str) -> str:
    if _model is None:
        return fallback
    try:
        response = _model.generate_content(prompt)
        text = (response.text or "").strip()
        return text or fallback
    except Exception as e:
        logger.error(f"Gemini Error: {e}")
        return fallback


def generate_manifesto(name: str, department: str) -> str:
    prompt = (
        f"Write a short, catchy, 2-sentence election manifesto for a student named {name} "
        f"running for Class Representative in the {department} department. "
        "Keep it professional but energetic."
    )
    return _generate(prompt, MANIFESTO_FALLBACK)


def summarize_results(candidates: List[Dict], total_votes: int, winner: Optional[Dict]) -> str:
    """Three-sentence summary of the outcome. Needs a winner."""
    if not winner:
        return SUMMARY_FALLBACK
    lines = "\n".join(f"- {c['name']}: {c['voteCount']} votes" for c in candidates)
    prompt = (
        "Analyze these student election results:\n"
        f"Total Votes Cast: {total_votes}\n"
        f"Winner: {winner['name']} ({winner['department']})\n\n"
        f"Candidates:\n{lines}\n\n"
        "Provide a brief 3-sentence summary of the election outcome, commenting on the "
        "voter turnout or margin of victory. Professional tone."
    )
    return _generate(prompt, SUMMARY_FALLBACK)
