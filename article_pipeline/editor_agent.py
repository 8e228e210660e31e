# article_pipeline/editor_agent.py
import logging
from typing import Optional

from .llm import CompletionClient
from .models import EditResult
from .prompt_factory import make_editor_prompt, make_verify_prompt
from .text_utils import count_words, reading_time, strip_em_dash

logger = logging.getLogger(__name__)


class EditorAgent:
    """
    Two-pass human-sounding edit: a review pass, then a minimal verify pass.

    An empty answer from either pass keeps the previous text. Em dashes are
    stripped from the final result regardless of what the model returned.
    """

    def __init__(self, client: CompletionClient):
        self.client = client

    def _pass(self, name: str, ps, fallback: str) -> str:
        out = self.client.complete(ps.system, ps.user, temperature=ps.temperature).strip()
        if not out:
            logger.warning("Editor %s pass returned nothing; keeping previous text", name)
            return fallback
        return out

    def edit(self, content: str, article_type: Optional[str] = None, tone: Optional[str] = None) -> EditResult:
        if not (content or "").strip():
            raise ValueError("Article content is required")

        reviewed = self._pass("review", make_editor_prompt(content, article_type, tone), content)
        verified = self._pass("verify", make_verify_prompt(reviewed), reviewed)
        final = strip_em_dash(verified)

        words = count_words(final)
        logger.info("Editor pass done: %d -> %d words", count_words(content), words)
        return EditResult(content=final, word_count=words, reading_time=reading_time(words))
