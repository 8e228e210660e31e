# scripts/build_link_index.py
"""
Build the related-article index used for internal linking.

Input is JSONL, one published article per line:
    {"id": "...", "title": "...", "slug": "...", "excerpt": "..."}

Usage:
    python scripts/build_link_index.py data/articles.jsonl
    python scripts/build_link_index.py --from-store     # index saved ArticleStore records
"""
import argparse
import json
import logging
import os
import sys
import tempfile
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from article_pipeline.config import load_settings
from article_pipeline.internal_links import OpenAIEmbedder, ingest_from_jsonl
from article_pipeline.publishing import ArticleStore

log = logging.getLogger("build_link_index")


def _store_to_jsonl(storage_dir: str) -> str:
    fd, path = tempfile.mkstemp(suffix=".jsonl")
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        for a in ArticleStore(storage_dir).as_candidates():
            f.write(json.dumps(a.model_dump(), ensure_ascii=False) + "\n")
    return path


def main(argv=None) -> int:
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    ap = argparse.ArgumentParser(description="Build storage/link_index.json + link_vectors.npy")
    ap.add_argument("jsonl", nargs="?", default=str(ROOT / "data" / "articles.jsonl"))
    ap.add_argument("--from-store", action="store_true", help="index articles saved by the app instead")
    ap.add_argument("--storage-dir", default=None)
    args = ap.parse_args(argv)

    settings = load_settings()
    storage_dir = args.storage_dir or settings.storage_dir

    src = _store_to_jsonl(storage_dir) if args.from_store else args.jsonl
    if not os.path.exists(src):
        log.error("Input file not found: %s", src)
        return 1

    try:
        n = ingest_from_jsonl(src, OpenAIEmbedder(settings=settings), storage_dir=storage_dir)
    finally:
        if args.from_store:
            os.remove(src)

    if not n:
        log.error("No valid articles found in %s", src)
        return 1
    log.info("Index rebuilt: %d articles in %s", n, storage_dir)
    return 0


if __name__ == "__main__":
    sys.exit(main())
