"""
Text generation for business insights and product descriptions.

Best effort only: a missing key, an API error or an empty answer turns into
a fixed fallback string, never an exception.
"""

import json
import logging
from typing import Any, Dict, List, Optional

import openai
from flask import current_app

logger = logging.getLogger(__name__)

INSIGHT_FALLBACK = "Could not generate insights right now. Check that OPENAI_API_KEY is configured."
DESCRIPTION_FALLBACK = ""

INSIGHT_PROMPT = """Act as a senior management consultant for print shops and e-commerce.
Analyse the business data below (JSON) and write a concise, actionable report.

BUSINESS DATA:
{context}

The report must contain:
1. Profitability analysis (profit vs costs).
2. Bottlenecks or critical stock, if visible.
3. Three practical suggestions to raise margin or reduce waste.
4. A note on operational performance if there is data for it.

Use Markdown (bold, lists). Be direct."""

DESCRIPTION_PROMPT = """Write a short, persuasive, marketplace-SEO description for a printed product called "{name}".
Materials used: {materials}.
Focus on quality and durability. At most 300 characters."""


class InsightService:
    """Thin wrapper around the OpenAI chat API."""

    def __init__(self, api_key: str = "", model: str = "gpt-4o-mini", client=None):
        self.model = model
        self._client = client
        if self._client is None and api_key:
            try:
                self._client = openai.OpenAI(api_key=api_key)
                logger.info("OpenAI client initialised")
            except Exception as e:
                logger.error(f"OpenAI client initialisation failed: {e}")
                self._client = None
        elif self._client is None:
            logger.warning("OPENAI_API_KEY is not set; AI features return fallback text.")

    def is_available(self) -> bool:
        return self._client is not None

    def _complete(self, prompt: str, max_tokens: int = 800, temperature: float = 0.4) -> Optional[str]:
        if not self.is_available():
            return None
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=max_tokens,
                temperature=temperature,
            )
            return response.choices[0].message.content
        except Exception as e:
            logger.error(f"chat completion failed: {e}")
            return None

    def summarize_business(self, context: Dict[str, Any]) -> str:
        """
        Consultant-style report for one month of figures.

        Args:
            context: grossRevenue, totalFees, totalCOGS, contributionMargin,
                totalExpenses, netProfit, topProductNames

        Returns:
            str: Markdown text, or INSIGHT_FALLBACK
        """
        text = self._complete(INSIGHT_PROMPT.format(context=json.dumps(context, ensure_ascii=False)))
        return text or INSIGHT_FALLBACK

    def suggest_description(self, product_name: str, material_names: List[str]) -> str:
        text = self._complete(
            DESCRIPTION_PROMPT.format(name=product_name, materials=", ".join(material_names)),
            max_tokens=200,
            temperature=0.7,
        )
        return (text or DESCRIPTION_FALLBACK).strip()


def get_insights() -> InsightService:
    """The app's InsightService, created on first use."""
    svc = current_app.extensions.get("insights")
    if svc is None:
        svc = InsightService(
            api_key=current_app.config.get("OPENAI_API_KEY", ""),
            model=current_app.config.get("AI_MODEL", "gpt-4o-mini"),
        )
        current_app.extensions["insights"] = svc
    return svc
