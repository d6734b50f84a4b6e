"""
Voice Entry Agent for MoneyNote

DESIGN DECISION: Gemini does three narrow jobs and nothing else:
1. Transcribe a voice recording to text
2. Translate Burmese text into proposed transactions
3. Write a short monthly advice note FROM the user's own records

CRITICAL BOUNDARIES:
- CAN: Propose transactions (label, amount, type, category)
- CANNOT: Persist anything. Drafts go to the user for confirmation,
  then through the validator like any manually entered record
- CANNOT: Invent categories. Whatever the model answers is mapped
  onto the closed Category enumeration, unknown names become GENERAL

The LLM is a TRANSLATOR, not an ORACLE.
"""

import json
import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

import google.generativeai as genai
import structlog

from moneynote.config import GeminiSettings, get_settings
from moneynote.i18n import Language, Localizer
from moneynote.ledger.aggregator import local_today
from moneynote.models.transaction import (
    Category,
    EntrySource,
    Transaction,
    TransactionDraft,
    TransactionType,
)

logger = structlog.get_logger(__name__)


TRANSCRIBE_PROMPT = "Transcribe the audio to text. Return only the transcription text."

PARSE_CATEGORY_NAMES = [
    "Food", "Transport", "Shopping", "Health", "Bills/Internet",
    "Phone Bill", "Gift/Donation", "Work", "Education", "General",
    "Salary", "Bonus", "Business/Sales", "Allowance", "Refund",
]

PARSE_PROMPT = """You are a smart expense tracking assistant for a Burmese user.
Your task is to parse Burmese natural language text into structured JSON data.

Rules:
1. Identify one or more transactions in the text.
2. Extract the 'amount' as an Integer. Convert Burmese numbers (၀-၉) or words (e.g., 'သောင်းခွဲ' -> 15000) to digits.
3. Extract the 'label' (description). Fix spelling errors if necessary.
4. Determine the 'type': 'INCOME' or 'EXPENSE'. Default to 'EXPENSE'.
   - Keywords for INCOME: 'လစာ' (Salary), 'ရ' (Received), 'ဝင်ငွေ', 'ပြန်ရ'.
5. Categorize the transaction into the most appropriate category from this list: {categories}.
   - Example: 'ထမင်း' -> 'Food', 'ကားခ' -> 'Transport', 'ဖုန်း' -> 'Phone Bill'.
   - If unsure, use 'General'.

Input Example: "မနက်စာစားတာက ၄၅၀၀ ဈေးဝယ်တာက ၅၀၀၀"
Output JSON: [{{"label": "Breakfast", "amount": 4500, "type": "EXPENSE", "category": "Food"}}, {{"label": "Shopping", "amount": 5000, "type": "EXPENSE", "category": "Shopping"}}]

Respond with ONLY a JSON array.

Text:
{text}"""

ADVICE_PROMPT = """You are a helpful Burmese financial assistant.
Analyze the following monthly transaction data formatted in JSON:
{data}

Total Income: {income}
Total Expense: {expense}

Please provide a short, friendly summary and advice in the Burmese language (Myanmar Unicode).
1. Summarize the spending.
2. Point out the largest expenses.
3. Give a short advice on saving if expenses are high.

Keep the tone encouraging and polite. Use plain text."""

# Myanmar digits ၀-၉ to ASCII
BURMESE_DIGITS = str.maketrans("၀၁၂၃၄၅၆၇၈၉", "0123456789")


class VoiceAgentError(Exception):
    """Base exception for voice entry failures."""
    pass


class TranscriptionError(VoiceAgentError):
    """The recording could not be turned into text."""
    pass


class VoiceParseError(VoiceAgentError):
    """The model's answer could not be read as a list of transactions."""
    pass


def _parse_amount(value: Any) -> Optional[Decimal]:
    """
    Read an amount the model returned as a number or a string.

    Burmese digits and thousands separators are accepted.
    Anything unreadable becomes None and is caught by the validator.
    """
    if value is None or isinstance(value, bool):
        return None
    text = str(value).translate(BURMESE_DIGITS).replace(",", "").strip()
    try:
        amount = Decimal(text)
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


def parse_model_output(
    raw: str,
    today: Optional[date] = None,
) -> list[TransactionDraft]:
    """
    Convert the model's JSON answer into transaction drafts.

    Accepts a bare array, an array wrapped in a markdown code fence,
    or {"transactions": [...]}. Every draft is dated `today`.

    Raises:
        VoiceParseError: If the answer is not a JSON array of objects
    """
    text = (raw or "").strip()
    fenced = re.search(r"```(?:json)?\s*(.*?)```", text, re.DOTALL)
    if fenced:
        text = fenced.group(1).strip()

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise VoiceParseError(f"Model returned invalid JSON: {e}")

    if isinstance(data, dict) and "transactions" in data:
        data = data["transactions"]
    if not isinstance(data, list):
        raise VoiceParseError("Model did not return a list of transactions")

    day = (today or local_today()).isoformat()
    drafts = []
    for item in data:
        if not isinstance(item, dict):
            raise VoiceParseError(f"Unexpected item in model output: {item!r}")

        type_name = str(item.get("type") or "").strip().upper()
        tx_type = TransactionType.INCOME if type_name == "INCOME" else TransactionType.EXPENSE

        label = item.get("label")
        drafts.append(TransactionDraft(
            source=EntrySource.VOICE,
            amount=_parse_amount(item.get("amount")),
            label=str(label).strip() if label is not None else None,
            date=day,
            type=tx_type,
            category=Category.from_ai_label(item.get("category")),
        ))

    return drafts


class VoiceExpenseAgent:
    """
    Gemini-backed helper for voice entry and monthly advice.

    RESPONSIBILITIES:
    - Transcribe recorded audio
    - Propose transactions from transcribed text
    - Summarize a month of transactions in Burmese

    BOUNDARIES:
    - NEVER persists data
    - ALWAYS defers to the user for confirmation
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model: Optional[Any] = None,
        localizer: Optional[Localizer] = None,
    ):
        """
        Args:
            settings: Gemini configuration (defaults to the environment)
            model: A ready GenerativeModel; skips client configuration
            localizer: Source of the fallback messages
        """
        self._localizer = localizer or Localizer(Language.MY)
        if model is not None:
            self._model = model
        else:
            self._settings = settings or get_settings().gemini
            self._configure_genai()

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

    async def transcribe(
        self,
        audio_bytes: bytes,
        mime_type: str = "audio/webm",
    ) -> str:
        """
        Transcribe a recording to text.

        Raises:
            TranscriptionError: On empty audio, API failure or empty result
        """
        if not audio_bytes:
            raise TranscriptionError("No audio data provided")

        try:
            response = await self._model.generate_content_async([
                {"mime_type": mime_type or "audio/webm", "data": audio_bytes},
                TRANSCRIBE_PROMPT,
            ])
            text = (response.text or "").strip()
        except Exception as e:
            raise TranscriptionError(f"Transcription failed: {e}")

        if not text:
            raise TranscriptionError("Transcription returned no text")

        logger.info("voice_transcribed", mime_type=mime_type, text_length=len(text))
        return text

    async def parse_transactions(
        self,
        text: str,
        today: Optional[date] = None,
    ) -> list[TransactionDraft]:
        """
        Propose transactions from Burmese text.

        Returns drafts for the user to confirm. An answer with no
        transactions is an empty list, not an error.

        Raises:
            VoiceParseError: On empty input, API failure or malformed output
        """
        if not text or not text.strip():
            raise VoiceParseError("No text provided")

        prompt = PARSE_PROMPT.format(
            categories=", ".join(PARSE_CATEGORY_NAMES),
            text=text.strip(),
        )

        try:
            response = await self._model.generate_content_async(
                prompt,
                generation_config={"response_mime_type": "application/json"},
            )
            raw = response.text
        except Exception as e:
            raise VoiceParseError(f"Parsing request failed: {e}")

        drafts = parse_model_output(raw, today)
        logger.info("voice_parsed", draft_count=len(drafts))
        return drafts

    async def analyze_finances(self, transactions: list[Transaction]) -> str:
        """
        Short Burmese summary and saving advice for a month.

        Never raises: an empty month or a failed call returns a
        localized message instead.
        """
        if not transactions:
            return self._localizer.text("advice_no_data")

        income = sum(
            (tx.amount for tx in transactions if tx.type == TransactionType.INCOME),
            Decimal(0),
        )
        expense = sum(
            (tx.amount for tx in transactions if tx.type == TransactionType.EXPENSE),
            Decimal(0),
        )
        data = json.dumps(
            [
                {
                    "date": tx.date,
                    "type": tx.type.value,
                    "amount": float(tx.amount),
                    "label": tx.label,
                }
                for tx in transactions
            ],
            ensure_ascii=False,
        )
        prompt = ADVICE_PROMPT.format(data=data, income=income, expense=expense)

        try:
            response = await self._model.generate_content_async(prompt)
            text = (response.text or "").strip()
        except Exception as e:
            logger.warning("advice_failed", error=str(e))
            return self._localizer.text("advice_error")

        return text or self._localizer.text("advice_unavailable")

