"""
AI Advice Agent for Pension Ledger

DESIGN DECISION: The LLM only ever sees a SUMMARY of the ledger
(totals plus the most recent entries). It gives a short, motivating
tip; it never edits data and its output is never stored.

CRITICAL BOUNDARIES:
- CAN: Comment on the user's totals and recent entries
- CANNOT: Change or persist anything
- NEVER raises to the caller: every failure becomes a friendly
  placeholder sentence the UI can show as-is.
"""

from typing import Optional, Sequence

import google.generativeai as genai
import structlog

from pension_ledger.audit import AuditLogger
from pension_ledger.config import get_settings
from pension_ledger.config.settings import GeminiSettings
from pension_ledger.formatting import format_currency
from pension_ledger.models.entry import Entry, EntryKind, Summary


logger = structlog.get_logger(__name__)

NO_ENTRIES_MESSAGE = "Adicione lançamentos para receber insights financeiros."
NOT_CONFIGURED_MESSAGE = (
    "Os insights de IA não estão disponíveis: configure a chave GEMINI_API_KEY."
)
FAILURE_MESSAGE = "Erro ao obter insights da IA."
EMPTY_RESPONSE_MESSAGE = "Não foi possível gerar um conselho no momento."


class AdviceAgent:
    """
    Produces a short financial tip from the ledger summary.

    The Gemini model is only configured when an API key is present;
    without one every request returns NOT_CONFIGURED_MESSAGE.
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        recent_limit: Optional[int] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._settings = settings or get_settings().gemini
        self._recent_limit = recent_limit or get_settings().app.advice_recent_entries
        self._audit_logger = audit_logger
        self._model = None
        if self._settings.is_configured:
            self._configure_genai()

    @property
    def is_configured(self) -> bool:
        return self._model is not None

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            }
        )

    def build_prompt(self, entries: Sequence[Entry], summary: Summary) -> str:
        """Prompt with the summary and the most recent entries."""
        recent = list(entries)[-self._recent_limit:]
        lines = []
        for entry in recent:
            kind = "entrada" if entry.kind is EntryKind.INCOME else "saída"
            lines.append(
                f"- {entry.date.isoformat()}: {entry.description} "
                f"({format_currency(entry.amount)} - {kind})"
            )
        recent_block = "\n".join(lines)

        return f"""Act as a financial specialist for Brazilian INSS retirees and pensioners.

Analyse this financial summary:
- Starting balance: {format_currency(summary.starting_balance)}
- Total income: {format_currency(summary.total_income)}
- Total expenses: {format_currency(summary.total_expenses)}
- Final balance: {format_currency(summary.final_balance)}

Recent entries:
{recent_block}

Give short (at most 3 sentences), motivating advice about this user's financial health.
Answer in Brazilian Portuguese, in plain language, without markdown."""

    async def request_advice(
        self,
        entries: Sequence[Entry],
        summary: Summary,
    ) -> str:
        """
        Ask Gemini for a tip.

        Always returns user-facing text, never raises.
        """
        if not entries:
            return NO_ENTRIES_MESSAGE

        if not self.is_configured:
            return NOT_CONFIGURED_MESSAGE

        try:
            prompt = self.build_prompt(entries, summary)
            response = await self._model.generate_content_async(prompt)
            text = (response.text or "").strip()
        except Exception as e:
            logger.warning("advice_generation_failed", error=str(e))
            if self._audit_logger:
                await self._audit_logger.log_advice_failed(error_message=str(e))
            return FAILURE_MESSAGE

        return text or EMPTY_RESPONSE_MESSAGE
