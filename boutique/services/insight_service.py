import asyncio
import json
import logging
import math
import time
from collections import OrderedDict
from decimal import Decimal
from typing import Callable, NamedTuple, Optional
from urllib import error, request
from urllib.parse import quote, urlparse

from boutique.config import Settings, get_settings
from boutique.core.constants import STATUS_PAID
from boutique.core.money import money_sum

logger = logging.getLogger(__name__)

_ALLOWED_HTTP_SCHEMES = {"http", "https"}

MESSAGE_NOT_CONFIGURED = "AI insights are waiting for an API key."
MESSAGE_NO_SALES = "Record sales to unlock AI insights."
MESSAGE_COOLDOWN = "AI is resting. Try again in {}s."
MESSAGE_QUOTA = "Quota reached. AI paused for 1 minute."
MESSAGE_OFFLINE = "AI insights are temporarily offline."
MESSAGE_EMPTY = "Insights unavailable right now."
MESSAGE_SUPERSEDED = "Superseded by a newer request."


class InsightContext(NamedTuple):
    sale_count: int
    total_value: Decimal
    customer_count: int
    open_installments: int


class QuotaExceeded(RuntimeError):
    pass


def build_context(sales, customers) -> InsightContext:
    return InsightContext(
        sale_count=len(sales),
        total_value=money_sum(sale.total_amount for sale in sales),
        customer_count=len(customers),
        open_installments=sum(
            1 for sale in sales for item in sale.installments if item.status != STATUS_PAID
        ),
    )


def build_prompt(context: InsightContext) -> str:
    return (
        "Briefly analyse (max 300 characters): a clothing store with {} sales "
        "({} total), {} customers and {} open installments. "
        "Focus on financial health."
    ).format(
        context.sale_count,
        context.total_value,
        context.customer_count,
        context.open_installments,
    )


def build_payload(prompt: str) -> dict:
    return {
        "contents": [{"parts": [{"text": prompt}]}],
        "generationConfig": {"temperature": 0.5, "maxOutputTokens": 200},
    }


def validate_api_url(api_url):
    parsed = urlparse(api_url)
    scheme = parsed.scheme.lower()
    if scheme not in _ALLOWED_HTTP_SCHEMES or not parsed.netloc:
        raise RuntimeError("INSIGHT_API_URL must be an absolute HTTP(S) URL")
    return api_url


def extract_text(body: dict) -> str:
    candidates = body.get("candidates") or []
    for candidate in candidates:
        parts = (candidate.get("content") or {}).get("parts") or []
        text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))
        if text.strip():
            return text.strip()
    return ""


def request_insight(prompt: str, settings: Settings) -> str:
    api_url = validate_api_url((settings.INSIGHT_API_URL or "").strip())
    endpoint = "{}/{}:generateContent".format(api_url.rstrip("/"), quote(settings.INSIGHT_MODEL))
    req = request.Request(
        endpoint,
        data=json.dumps(build_payload(prompt)).encode("utf-8"),
        method="POST",
        headers={
            "Content-Type": "application/json",
            "x-goog-api-key": settings.INSIGHT_API_KEY or "",
        },
    )
    try:
        with request.urlopen(req, timeout=settings.INSIGHT_TIMEOUT_SECONDS) as response:  # nosec B310
            body = json.loads(response.read().decode("utf-8"))
    except error.HTTPError as exc:
        if exc.code == 429:
            raise QuotaExceeded("Insight API quota exceeded") from exc
        raise RuntimeError("Insight API error: HTTP {}".format(exc.code)) from exc
    except error.URLError as exc:
        raise RuntimeError("Insight API error: {}".format(exc.reason)) from exc
    return extract_text(body)


class InsightService:
    """Read-only commentary on the ledger from an external text model.

    Answers are cached per context tuple; at most ``INSIGHT_CACHE_SIZE``
    entries are kept, least recently used dropped first. A quota error starts
    a cooldown during which calls short-circuit to a static message. Any other failure
    degrades to fallback text; nothing is raised to the caller.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        fetch: Optional[Callable[[str, Settings], str]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings or get_settings()
        self._fetch = fetch or request_insight
        self._clock = clock
        self._cache: "OrderedDict[InsightContext, str]" = OrderedDict()
        self._cooldown_until = 0.0
        self._inflight: dict[str, asyncio.Task] = {}

    @property
    def configured(self) -> bool:
        return bool((self.settings.INSIGHT_API_KEY or "").strip())

    def cooldown_remaining(self) -> int:
        remaining = self._cooldown_until - self._clock()
        return max(0, math.ceil(remaining))

    async def get_insight(self, key: str, context: InsightContext) -> str:
        """Return commentary for ``context``; a newer call with the same key wins."""
        if not self.configured:
            return MESSAGE_NOT_CONFIGURED
        remaining = self.cooldown_remaining()
        if remaining > 0:
            return MESSAGE_COOLDOWN.format(remaining)
        if context.sale_count == 0:
            return MESSAGE_NO_SALES
        cached = self._cache.get(context)
        if cached is not None:
            self._cache.move_to_end(context)
            return cached

        previous = self._inflight.get(key)
        if previous is not None and not previous.done():
            previous.cancel()
        task = asyncio.ensure_future(self._generate(context))
        self._inflight[key] = task
        try:
            return await task
        except asyncio.CancelledError:
            if task.cancelled() and self._inflight.get(key) is not task:
                return MESSAGE_SUPERSEDED
            raise
        finally:
            if self._inflight.get(key) is task:
                del self._inflight[key]

    async def _generate(self, context: InsightContext) -> str:
        prompt = build_prompt(context)
        try:
            text = await asyncio.to_thread(self._fetch, prompt, self.settings)
        except QuotaExceeded:
            self._cooldown_until = self._clock() + self.settings.INSIGHT_COOLDOWN_SECONDS
            logger.warning(
                "Insight quota reached; pausing for %ss", self.settings.INSIGHT_COOLDOWN_SECONDS
            )
            return MESSAGE_QUOTA
        except (RuntimeError, OSError, ValueError) as exc:
            logger.warning("Insight request failed: %s", exc)
            return MESSAGE_OFFLINE

        if not text:
            return MESSAGE_EMPTY
        self._remember(context, text)
        return text

    def _remember(self, context: InsightContext, text: str) -> None:
        self._cache[context] = text
        self._cache.move_to_end(context)
        while len(self._cache) > max(1, self.settings.INSIGHT_CACHE_SIZE):
            self._cache.popitem(last=False)


__all__ = [
    "InsightContext",
    "InsightService",
    "QuotaExceeded",
    "build_context",
    "build_payload",
    "build_prompt",
    "extract_text",
    "request_insight",
    "validate_api_url",
]
