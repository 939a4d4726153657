#!/usr/bin/env python3
"""Rewrite a keyword export (any supported version) in the current schema.

Legacy exports with plain-string keyword lists are upgraded to keyword
objects; missing isDone/priority/folders get their defaults.

Usage:
    python scripts/upgrade_export.py old-export.json [-o upgraded.json]
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Ensure src/ is importable
SRC = Path(__file__).resolve().parents[1] / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from pinkeyword.domain.errors import KeywordDecodeError  # noqa: E402
from pinkeyword.infrastructure.stores.keyword_codec import dump_document, load_document  # noqa: E402


def main() -> int:
    parser = argparse.ArgumentParser(description="Upgrade a keyword export to the current schema")
    parser.add_argument("source", help="export file to read")
    parser.add_argument("-o", "--output", help="destination (default: overwrite source)")
    args = parser.parse_args()

    try:
        data = load_document(args.source)
    except (KeywordDecodeError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    output = args.output or args.source
    dump_document(data, output)
    keywords = sum(len(t.relevant_keywords) for t in data.main_targets)
    print(
        f"Wrote {output}: {len(data.main_targets)} main targets, "
        f"{keywords} keywords, {len(data.folders)} folders"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
