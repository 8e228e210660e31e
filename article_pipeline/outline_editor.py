# article_pipeline/outline_editor.py
from typing import List, Optional

import streamlit as st

from .models import Outline, OutlineSection
from .outline_parser import DEFAULT_WORD_TARGET


def _lines(text: str) -> List[str]:
    return [x.strip() for x in (text or "").split("\n") if x.strip()]


def _key(section: OutlineSection) -> str:
    # sections live in session_state across reruns, so object identity is stable
    return f"{id(section):x}"


# ---------- pure edit operations ----------

def move_section(outline: Outline, index: int, delta: int) -> None:
    if not 0 <= index < len(outline.sections):
        return
    new = max(0, min(len(outline.sections) - 1, index + delta))
    outline.sections[index], outline.sections[new] = outline.sections[new], outline.sections[index]


def add_section(outline: Outline, heading: str = "New Section", word_target: int = DEFAULT_WORD_TARGET) -> OutlineSection:
    section = OutlineSection(heading=heading, word_target=word_target)
    outline.sections.append(section)
    return section


def delete_section(outline: Outline, index: int) -> None:
    if 0 <= index < len(outline.sections):
        outline.sections.pop(index)


def update_section(
    outline: Outline,
    index: int,
    heading: Optional[str] = None,
    key_points: Optional[List[str]] = None,
    word_target: Optional[int] = None,
) -> None:
    """Apply edits to one section. Non-positive word targets are ignored."""
    if not 0 <= index < len(outline.sections):
        return
    section = outline.sections[index]
    if heading is not None and heading.strip():
        section.heading = heading.strip()
    if key_points is not None:
        section.key_points = [k.strip() for k in key_points if k.strip()]
    if word_target is not None and int(word_target) > 0:
        section.word_target = int(word_target)


def total_word_target(outline: Outline) -> int:
    return sum(s.word_target for s in outline.sections)


# ---------- Streamlit widget ----------

def _apply_text_edits(outline: Outline):
    """Pull values from session_state into the Outline object (autosave)."""
    outline.title = st.session_state.get("outline_title", outline.title)
    outline.hook = st.session_state.get("outline_hook", outline.hook)
    for i, section in enumerate(outline.sections):
        k = _key(section)
        update_section(
            outline, i,
            heading=st.session_state.get(f"heading_{k}"),
            key_points=_lines(st.session_state.get(f"kp_{k}", "\n".join(section.key_points))),
            word_target=st.session_state.get(f"wt_{k}"),
        )


def render_editor(outline: Outline):
    st.subheader("Outline Editor")
    st.caption(f"Edits are **auto-saved** as you type. Planned length: {total_word_target(outline)} words.")

    st.text_input("Title", value=outline.title, key="outline_title")
    st.text_area("Hook", value=outline.hook, key="outline_hook", height=80)

    c1, c2 = st.columns([3, 1])
    new_heading = c1.text_input("Add section", key="new_section_heading", placeholder="e.g., Choosing the Right Plan")
    if c2.button("Add section"):
        add_section(outline, heading=new_heading or "New Section")
        st.rerun()

    for i, section in enumerate(list(outline.sections)):
        k = _key(section)
        with st.expander(f"{i + 1}. {section.heading or 'Untitled'} ({section.word_target} words)", expanded=False):
            r1, r2, r3 = st.columns([1, 1, 2])
            if r1.button("▲ Move up", key=f"up_{k}"):
                move_section(outline, i, -1); st.rerun()
            if r2.button("▼ Move down", key=f"down_{k}"):
                move_section(outline, i, +1); st.rerun()
            if r3.button("🗑 Delete", key=f"del_{k}"):
                delete_section(outline, i); st.rerun()

            st.text_input("Heading", value=section.heading, key=f"heading_{k}")
            st.number_input("Word target", min_value=1, value=section.word_target, step=25, key=f"wt_{k}")
            st.text_area("Key points (one per line)", value="\n".join(section.key_points), key=f"kp_{k}", height=100)
            if section.suggested_links:
                st.caption("Suggested links: " + ", ".join(lk.anchor_text for lk in section.suggested_links))

    # AUTOSAVE: pull widget values back into the Outline object every run
    _apply_text_edits(outline)
