"""
Prompt Builder
Prompts that ask the generative backend for a personalized partial contract.
"""

from collections.abc import Sequence
from typing import Any

from ..core import safe_json_dumps
from .analytics import AnalyticsSummary

SYSTEM_PROMPT = (
    "You are a senior UX optimization expert focused on mobile-first design. "
    "Apply Nielsen's 10 Usability Heuristics: visibility of system status; match between system "
    "and the real world; user control and freedom; consistency and standards; error prevention; "
    "recognition rather than recall; flexibility and efficiency of use; aesthetic and minimalist "
    "design; help users recognize, diagnose, and recover from errors; help and documentation. "
    "Optimize interactions, navigation, and forms with minimal cognitive load while preserving "
    "semantics. Always return valid JSON conforming to the supplied schema. "
    "Important: Only generate authenticated page sections; exclude public pages."
)

OPTIMIZATION_GOALS = (
    "Improve navigation clarity and reduce taps to reach key screens",
    "Reduce errors and friction in forms",
    "Increase engagement on underutilized pages and components",
    "Optimize for mobile ergonomics and thumb reach",
    "Ensure consistent components and actions from supported lists",
)

OUTPUT_REQUIREMENTS = {
    "format": "JSON only",
    "schema": (
        "Partial contract with meta and pagesUI.pages ONLY (authenticated scope). Exclude public "
        "pages and all other sections (services, routes, dataModels, state, themes)."
    ),
    "explanationField": "Place human-readable reasoning in meta.optimizationExplanation",
    "scope": "authenticated-only",
}


class ContractPromptBuilder:
    """Builds system, generation and correction prompts."""

    @staticmethod
    def system_prompt() -> str:
        return SYSTEM_PROMPT

    @staticmethod
    def user_prompt(current: dict[str, Any], analytics: AnalyticsSummary) -> str:
        """
        Build the first-attempt prompt.

        Args:
            current: Authenticated subset of the current contract
            analytics: Usage summary for those pages

        Returns:
            JSON-encoded prompt payload
        """
        return safe_json_dumps(
            {
                "currentContract": current,
                "analytics": analytics.prompt_payload(),
                "painPoints": analytics.prompt_pain_points(),
                "optimizationGoals": list(OPTIMIZATION_GOALS),
                "outputRequirements": OUTPUT_REQUIREMENTS,
            }
        )

    @staticmethod
    def retry_prompt(current: dict[str, Any], analytics: AnalyticsSummary, errors: Sequence[str]) -> str:
        """
        Build the correction prompt embedding the previous validation errors.

        Args:
            current: Authenticated subset of the current contract
            analytics: Usage summary for those pages
            errors: ``"path: message"`` strings from the failed attempt

        Returns:
            JSON-encoded prompt payload
        """
        return safe_json_dumps(
            {
                "currentContract": current,
                "analytics": analytics.prompt_payload(),
                "painPoints": analytics.prompt_pain_points(),
                "correction": {
                    "reason": "Previous output failed validation; correct the following issues",
                    "errors": list(errors),
                },
                "outputRequirements": OUTPUT_REQUIREMENTS,
            }
        )
