# app.py: outline-then-write console for the article pipeline

import io
import logging

import streamlit as st
from dotenv import load_dotenv

load_dotenv()
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

from article_pipeline.config import ConfigError, load_settings
from article_pipeline.editor_agent import EditorAgent
from article_pipeline.images import OpenAIImageGenerator
from article_pipeline.internal_links import (
    OpenAIEmbedder,
    build_allowed_internal_links,
    collect_suggested_links,
    load_index,
    suggest_related_articles,
)
from article_pipeline.llm import CompletionError, OpenAICompletionClient
from article_pipeline.models import TopicCandidate
from article_pipeline.outline_agent import OutlineAgent
from article_pipeline.outline_editor import render_editor
from article_pipeline.outline_parser import OutlineParseError
from article_pipeline.publishing import ArticleStore, build_article_record
from article_pipeline.research import discover_topics, gather_sources
from article_pipeline.text_utils import generate_slug, markdown_to_html
from article_pipeline.validators import seo_lint
from article_pipeline.writer_agent import PipelineCancelled, WriterPipeline

log = logging.getLogger("app")

# ---------------- Page config ----------------
st.set_page_config(page_title="Outline-Then-Write", layout="wide")
st.title("📝 Article Pipeline")

settings = load_settings()
try:
    settings.require_api_key()
except ConfigError as e:
    st.error(str(e))
    st.stop()

client = OpenAICompletionClient(settings=settings)
store = ArticleStore(settings.storage_dir)

# ---------------- Session state ----------------
def init_state():
    ss = st.session_state
    ss.setdefault("topics", [])
    ss.setdefault("sources", [])
    ss.setdefault("related", [])
    ss.setdefault("outline", None)
    ss.setdefault("result", None)
init_state()
ss = st.session_state

# ---------------- Sidebar ----------------
with st.sidebar:
    article_type = st.selectbox("Article type", ["blog", "technical", "news", "opinion", "tutorial", "listicle", "affiliate"])
    target_length = st.selectbox("Target length", ["short", "medium", "long"], index=1)
    tone = st.text_input("Tone", "professional")
    make_cover = st.checkbox("Generate cover image", value=True)
    custom_instructions = st.text_area("Custom instructions (optional)", height=100)


def _candidates():
    """Published articles for linking: the embeddings index, else the local store."""
    try:
        items, vecs = load_index(settings.storage_dir)
        return items, vecs
    except FileNotFoundError:
        return store.as_candidates(), None


# ---------------- 1. Topic ----------------
st.subheader("1. Topic")
col_title, col_summary = st.columns([2, 3])
with col_title:
    topic_title = st.text_input("Topic title", value=ss.get("topic_title", ""))
with col_summary:
    topic_summary = st.text_area("Summary", value=ss.get("topic_summary", ""), height=68)

with st.expander("Discover topics (optional)"):
    industry = st.text_input("Industry")
    keywords = st.text_input("Keywords (comma separated)")
    if st.button("Find topics"):
        existing = [a.title for a in store.list()]
        try:
            with st.spinner("Researching..."):
                ss["topics"] = discover_topics(
                    client, industry, [k.strip() for k in keywords.split(",") if k.strip()],
                    ss["sources"], existing,
                )
        except CompletionError as e:
            st.error(f"Topic discovery failed: {e}")
    for i, t in enumerate(ss["topics"]):
        if st.button(f"Use: {t.title}", key=f"topic_{i}"):
            ss["topic_title"], ss["topic_summary"] = t.title, t.summary
            ss["sources"] = t.sources or ss["sources"]
            st.rerun()

with st.expander("Source URLs"):
    urls_txt = st.text_area("One per line", height=80, label_visibility="collapsed")
    if st.button("Fetch sources"):
        with st.spinner("Fetching..."):
            ss["sources"] = gather_sources(urls_txt.splitlines(), timeout=settings.source_fetch_timeout)
    for s in ss["sources"]:
        st.caption(f"- [{s.title or s.url}]({s.url})")

# ---------------- 2. Outline ----------------
st.subheader("2. Outline")
if st.button("Generate Outline", type="primary"):
    if not topic_title.strip():
        st.error("Please enter a topic title first")
    else:
        candidates, vecs = _candidates()
        try:
            ss["related"] = suggest_related_articles(
                f"{topic_title}. {topic_summary}", candidates, OpenAIEmbedder(settings=settings), vectors=vecs,
            ) if candidates else []
        except Exception as e:
            log.warning("Related-article lookup failed: %s", e)
            ss["related"] = []
        topic = TopicCandidate(title=topic_title.strip(), summary=topic_summary, sources=ss["sources"])
        try:
            with st.spinner("Outlining..."):
                parsed = OutlineAgent(client).create_outline(topic, article_type, target_length, tone, ss["related"])
            ss["outline"] = parsed.outline
            ss["result"] = None
            if parsed.degraded:
                st.warning("⚠️ The outline was rebuilt from a non-JSON answer; review it carefully.")
            st.success("✅ Outline ready")
        except (CompletionError, OutlineParseError) as e:
            st.error(f"Outline failed: {e}")

if ss["outline"] is not None:
    render_editor(ss["outline"])

# ---------------- 3. Write ----------------
st.divider()
if ss["outline"] is not None and st.button("Write Article", type="primary", use_container_width=True):
    outline = ss["outline"]
    allowed = build_allowed_internal_links(collect_suggested_links(outline), ss["related"])
    bar = st.progress(0, text="Starting...")
    pipeline = WriterPipeline(client, image_generator=OpenAIImageGenerator(settings=settings) if make_cover else None)
    try:
        ss["result"] = pipeline.run(
            outline,
            sources=ss["sources"],
            allowed_links=allowed,
            custom_instructions=custom_instructions or None,
            article_type=article_type,
            tone=tone,
            on_event=lambda ev: bar.progress(ev.progress, text=ev.message),
        )
        st.success("✅ Done")
    except (CompletionError, PipelineCancelled) as e:
        st.error(f"Writing failed: {e}")

result = ss.get("result")
if result is not None:
    st.caption(f"{result.word_count} words · {result.reading_time} min read · {result.completion_calls} model calls")
    for w in result.warnings:
        st.warning(f"⚠️ {w}")
    for note in seo_lint(result.full_document):
        st.info(f"SEO: {note}")

    if result.cover_image:
        st.image(result.cover_image)

    tab_md, tab_preview = st.tabs(["📝 Markdown", "👁️ Preview"])
    with tab_md:
        st.text_area("Markdown", value=result.full_document, height=400, label_visibility="collapsed")
    with tab_preview:
        st.html(markdown_to_html(result.full_document))

    col_edit, col_save, col_fmt, col_dl = st.columns([1.5, 1.5, 1.5, 1])
    with col_edit:
        if st.button("Human edit pass", use_container_width=True):
            try:
                with st.spinner("Editing..."):
                    edited = EditorAgent(client).edit(result.full_document, article_type, tone)
                ss["result"] = result.model_copy(update={
                    "full_document": edited.content,
                    "word_count": edited.word_count,
                    "reading_time": edited.reading_time,
                })
                st.rerun()
            except CompletionError as e:
                st.error(f"Editor failed: {e}")

    with col_save:
        if st.button("Save", use_container_width=True):
            record = build_article_record(result, ss["outline"], ss["related"])
            try:
                path = store.save(record)
                st.success(f"✅ Saved to {path}")
            except (OSError, ValueError) as e:
                # the article itself is fine; only persistence failed
                log.warning("Could not save article %r: %s", record.slug, e)
                st.warning(f"⚠️ Article generated but not saved: {e}")

    with col_fmt:
        export_fmt = st.selectbox("Format", ["Markdown", "HTML", "Word"], label_visibility="collapsed")

    with col_dl:
        if export_fmt == "HTML":
            data, ext = markdown_to_html(result.full_document).encode("utf-8"), ".html"
        elif export_fmt == "Markdown":
            data, ext = result.full_document.encode("utf-8"), ".md"
        else:
            from docx import Document
            buf = io.BytesIO()
            doc = Document()
            for p in result.full_document.split("\n\n"):
                doc.add_paragraph(p)
            doc.save(buf)
            data, ext = buf.getvalue(), ".docx"
        st.download_button("📥 Export", data=data, file_name=f"{generate_slug(ss['outline'].title) or 'article'}{ext}")
