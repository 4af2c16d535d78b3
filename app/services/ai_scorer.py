# app/services/ai_scorer.py
import logging
from collections.abc import Callable
from typing import Any

from app.core.rounding import round_int
from app.core.supabase_client import invoke_function
from app.models.profile import Profile

logger = logging.getLogger(__name__)


class AIQualityScorer:
    """
    Optional LLM-backed profile scorer reached through a Supabase Edge
    Function.

    The returned ai_score is stored next to the logic score but does not
    change total_score; no blend policy exists yet.
    """

    def __init__(
        self,
        function_name: str | None,
        invoke: Callable[[str, dict[str, Any]], dict[str, Any]] = invoke_function,
    ):
        self.function_name = function_name
        self._invoke = invoke

    @property
    def enabled(self) -> bool:
        return bool(self.function_name)

    def score(self, profile: Profile) -> tuple[int | None, dict[str, Any] | None]:
        """
        Ask the external scorer for a 0-100 score.

        Returns:
            (ai_score, ai_meta). ai_score is None when the scorer is disabled,
            fails, or returns something outside 0-100; failures are logged
            and recorded in ai_meta.
        """
        if not self.enabled:
            return None, None

        body = {
            "user_id": profile.user_id,
            "profile": {
                "bio": profile.bio,
                "interests": profile.interests or [],
                "university": profile.university,
                "personality_type": profile.personality_type,
                "values": profile.values,
                "mindset": profile.mindset,
                "lifestyle": profile.lifestyle,
            },
        }

        try:
            payload = self._invoke(self.function_name, body)
        except Exception as e:
            logger.warning("AI scorer %s failed for %s: %s", self.function_name, profile.user_id, e)
            return None, {"status": "error", "error": str(e)}

        raw = payload.get("ai_score") if isinstance(payload, dict) else None
        if isinstance(raw, bool) or not isinstance(raw, (int, float)) or not 0 <= raw <= 100:
            logger.warning("AI scorer returned no usable score for %s: %r", profile.user_id, raw)
            return None, {"status": "invalid", "raw": raw}

        meta = payload.get("meta") if isinstance(payload.get("meta"), dict) else {}
        return round_int(raw), {"status": "ok", **meta}
