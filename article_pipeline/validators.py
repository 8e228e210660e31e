# article_pipeline/validators.py
import re
from enum import Enum
from typing import Iterable, List, Tuple

from pydantic import BaseModel

from .content_guidelines import get_prohibited_patterns
from .models import AllowedInternalLink
from .text_utils import count_words

MAX_RETRIES = 2

BANNED = get_prohibited_patterns()


class ValidationState(str, Enum):
    PENDING = "pending"
    VALID = "valid"
    RETRY = "retry"
    ACCEPTED_WITH_WARNING = "accepted_with_warning"


class ValidationOutcome(BaseModel):
    state: ValidationState
    word_count: int
    min_words: int
    max_words: int

    @property
    def accepted(self) -> bool:
        return self.state in (ValidationState.VALID, ValidationState.ACCEPTED_WITH_WARNING)


def word_band(word_target: int) -> Tuple[int, int]:
    """
    Inclusive (min, max) word range for a section target: floor(90%), ceil(110%).

    Integer arithmetic keeps the bounds exact (100 * 1.1 is 110.00000000000001
    as a float, which would let 111 words through).
    """
    return (word_target * 9) // 10, -(-(word_target * 11) // 10)


class SectionValidator:
    """
    Word-count gate for generated sections.

    In band -> VALID. Out of band with retries left -> RETRY. Out of band with
    the retry budget spent -> ACCEPTED_WITH_WARNING, so a run always terminates.
    """

    def __init__(self, max_retries: int = MAX_RETRIES):
        self.max_retries = max_retries

    def evaluate(self, text: str, word_target: int, retry_count: int) -> ValidationOutcome:
        actual = count_words(text)
        min_words, max_words = word_band(word_target)
        if min_words <= actual <= max_words:
            state = ValidationState.VALID
        elif retry_count < self.max_retries:
            state = ValidationState.RETRY
        else:
            state = ValidationState.ACCEPTED_WITH_WARNING
        return ValidationOutcome(state=state, word_count=actual, min_words=min_words, max_words=max_words)


# ---------- whole-document checks (warnings only) ----------

_MD_LINK = re.compile(r"\[([^\]]+)\]\(([^)\s]+)\)")


def verify_internal_links(md: str, allowed: Iterable[AllowedInternalLink]) -> List[str]:
    """Internal links must come from the allow-list and never sit in a heading."""
    errs = []
    allowed_urls = {lk.url for lk in allowed}
    for m in _MD_LINK.finditer(md or ""):
        url = m.group(2)
        if url.startswith("/") and url not in allowed_urls:
            errs.append(f"Internal link not in allow-list: {url}")

    for h in re.findall(r"^#+ .*", md or "", flags=re.M):
        if "](" in h:
            errs.append("Link found in a heading.")
    return errs


def compliance_check(md: str) -> List[str]:
    """Prohibited formatting / AI-tell patterns present in ``md``."""
    errs = []
    for pat in BANNED:
        if re.search(pat, md or "", flags=re.I):
            errs.append(f"Prohibited pattern found: /{pat}/")
    return errs


def seo_lint(md: str) -> List[str]:
    """Check paragraph length and link density."""
    errs = []

    paras = [p for p in (md or "").split("\n\n") if p.strip() and not p.lstrip().startswith(("#", "|", "```", "-"))]
    long = [p for p in paras if count_words(p) > 130]
    if long:
        errs.append(f"{len(long)} paragraph(s) exceed ~130 words.")

    links = len(_MD_LINK.findall(md or ""))
    words = count_words(md or "")
    if words > 0 and links / words > (1 / 40):
        errs.append("Link density too high (> 1 per ~40 words).")

    return errs
