# article_pipeline/outline_parser.py
"""
Turn model output into typed outlines and topic candidates.

Models often wrap JSON in ```json fences or add chatter around it, so parsing
goes strict first, then the outermost {...} block, then a markdown heuristic.
"""
import json
import logging
import re
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .models import Conclusion, Outline, OutlineSection, ParsedOutline, TopicCandidate

logger = logging.getLogger(__name__)

DEFAULT_WORD_TARGET = 200

_FENCE = re.compile(r"^\s*```(?:json)?\s*|\s*```\s*$", re.IGNORECASE)


class OutlineParseError(ValueError):
    pass


def strip_code_fences(content: str) -> str:
    return _FENCE.sub("", (content or "").strip()).strip()


def parse_json_payload(content: str) -> Optional[Any]:
    """Best-effort JSON decode. Returns None when nothing parses."""
    text = strip_code_fences(content)
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    for open_ch, close_ch in (("{", "}"), ("[", "]")):
        start, end = text.find(open_ch), text.rfind(close_ch)
        if start != -1 and end > start:
            try:
                return json.loads(text[start:end + 1])
            except json.JSONDecodeError:
                continue
    return None


def _normalize_outline_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    sections = []
    for raw in data.get("sections") or []:
        if not isinstance(raw, dict):
            continue
        sec = dict(raw)
        target = sec.get("wordTarget", sec.get("word_target"))
        try:
            target = int(target)
        except (TypeError, ValueError):
            target = DEFAULT_WORD_TARGET
        sec["wordTarget"] = target if target > 0 else DEFAULT_WORD_TARGET
        sec.pop("word_target", None)
        links = sec.pop("suggestedLinks", None) or sec.pop("suggested_links", None) or []
        # drop half-formed suggestions instead of rejecting the whole outline
        sec["suggestedLinks"] = [
            lk for lk in links
            if isinstance(lk, dict) and lk.get("articleId") and lk.get("anchorText")
        ]
        sec["keyPoints"] = sec.get("keyPoints") or sec.pop("key_points", None) or []
        sections.append(sec)

    out = dict(data)
    out["sections"] = sections
    if not isinstance(out.get("conclusion"), dict):
        out["conclusion"] = {"summary": str(out.get("conclusion") or "")}
    return out


def _heuristic_outline(content: str) -> Outline:
    """Markdown fallback: '#' is the title, '##' starts a section, bullets are key points."""
    title = ""
    hook_lines: List[str] = []
    sections: List[OutlineSection] = []
    for line in (content or "").splitlines():
        s = line.strip()
        if not s:
            continue
        if s.startswith("## "):
            sections.append(OutlineSection(heading=s[3:].strip(), word_target=DEFAULT_WORD_TARGET))
        elif s.startswith("# ") and not title:
            title = s[2:].strip()
        elif s[:2] in ("- ", "* ") and sections:
            sections[-1].key_points.append(s[2:].strip())
        elif not sections:
            hook_lines.append(s)
    return Outline(
        title=title or "Untitled",
        hook=" ".join(hook_lines),
        sections=sections,
        conclusion=Conclusion(),
    )


def parse_outline(content: str) -> ParsedOutline:
    data = parse_json_payload(content)
    if isinstance(data, dict):
        try:
            return ParsedOutline(outline=Outline.model_validate(_normalize_outline_dict(data)))
        except ValidationError as e:
            logger.warning("Outline JSON did not validate, falling back to markdown: %s", e)

    outline = _heuristic_outline(strip_code_fences(content))
    if not outline.sections:
        raise OutlineParseError("Could not parse an outline from the model response")
    logger.warning("Outline parsed with markdown fallback (%d sections)", len(outline.sections))
    return ParsedOutline(outline=outline, degraded=True)


# ---------- topics ----------

def extract_topics_manually(content: str) -> List[TopicCandidate]:
    """Numbered or bulleted list fallback; 'Title: summary' lines are split."""
    topics = []
    for line in (content or "").splitlines():
        m = re.match(r"^\s*(?:\d+[.)]|[-*])\s+(.+)$", line)
        if not m:
            continue
        text = re.sub(r"[*_`]", "", m.group(1)).strip()
        title, _, summary = text.partition(":")
        if title.strip():
            topics.append(TopicCandidate(title=title.strip(), summary=summary.strip()))
    return topics


def parse_topics(content: str) -> List[TopicCandidate]:
    data = parse_json_payload(content)
    items = data.get("topics") if isinstance(data, dict) else data
    if isinstance(items, list):
        topics = []
        for it in items:
            if not isinstance(it, dict) or not it.get("title"):
                continue
            try:
                score = float(it.get("relevanceScore", it.get("relevance_score", 0.0)) or 0.0)
            except (TypeError, ValueError):
                score = 0.0
            topics.append(TopicCandidate(
                title=str(it["title"]).strip(),
                summary=str(it.get("summary") or ""),
                angle=str(it.get("angle") or ""),
                relevance_score=score,
            ))
        if topics:
            return topics
    topics = extract_topics_manually(content)
    logger.warning("Topics parsed with list fallback (%d found)", len(topics))
    return topics
