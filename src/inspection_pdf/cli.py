from __future__ import annotations

import argparse
import json
import logging
import os
import sys

from .errors import ReportError
from .options import TOC_MODES, ReportOptions
from .report import build_report


# ---------- CLI ----------
def parse_args(argv=None):
    ap = argparse.ArgumentParser(prog="inspection-pdf", description="Render an inspection JSON file as a PDF report.")
    ap.add_argument("--json", default="inspection.json", help="Path to inspection.json")
    ap.add_argument("--out", default="inspection_report.pdf", help="Output PDF path")
    ap.add_argument("--media-cache", default=None, help="Directory to cache downloaded media")
    ap.add_argument("--options", default=None, help="JSON file with report options (camelCase keys)")
    ap.add_argument("--no-toc", action="store_true", help="Leave out the table of contents")
    ap.add_argument("--no-images", action="store_true", help="Do not fetch or draw photos")
    ap.add_argument("--no-cover", action="store_true", help="Leave out the cover page")
    ap.add_argument("--report-id", default=None, help="Header identification line")
    ap.add_argument("--toc-mode", choices=TOC_MODES, default=None, help="Page numbers in the TOC")
    ap.add_argument("--include-line-items", action="store_true", help="List line items under TOC entries")
    ap.add_argument("--static-checkboxes", action="store_true", help="Draw checkboxes instead of form fields")
    ap.add_argument("--template", default=None, help="TREC template PDF; its first two pages follow the cover")
    ap.add_argument("--metadata-out", default=None, help="Write section page numbers as JSON here")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return ap.parse_args(argv)


def options_from_args(args) -> ReportOptions:
    base = ReportOptions.from_file(args.options) if args.options else ReportOptions()
    return base.merged(
        include_toc=False if args.no_toc else None,
        include_images=False if args.no_images else None,
        include_cover=False if args.no_cover else None,
        report_id=args.report_id,
        toc_mode=args.toc_mode,
        include_line_items=True if args.include_line_items else None,
        form_checkboxes=False if args.static_checkboxes else None,
    )


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        with open(args.json, "r", encoding="utf-8") as f:
            data = json.load(f)
        options = options_from_args(args)
        result = build_report(data, options, template_pdf=args.template, cache_dir=args.media_cache)
    except (OSError, ValueError, ReportError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    out_dir = os.path.dirname(os.path.abspath(args.out))
    os.makedirs(out_dir, exist_ok=True)
    with open(args.out, "wb") as f:
        f.write(result.pdf)
    if args.metadata_out:
        with open(args.metadata_out, "w", encoding="utf-8") as f:
            json.dump(result.sections, f, indent=2)

    print(f"Created: {args.out} ({result.page_count} pages)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
