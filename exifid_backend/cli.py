"""
Command line entry point: print normalized EXIF data as JSON lines.
"""
import argparse
import json
import logging
import os
import sys
from typing import List, Optional

from .config import EXIFID_DEBUG
from .deps import build_exif_service
from .shared import get_logger, request_id_var, sanitize_error_message


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="exifid",
        description="Extract EXIF metadata from images with ImageMagick identify.",
    )
    parser.add_argument("paths", nargs="+", help="Image files to inspect.")
    parser.add_argument("--identify", default=None, help="Path to the identify binary.")
    parser.add_argument("--timeout", type=float, default=None, help="Seconds before identify is killed.")
    parser.add_argument(
        "--all",
        action="store_true",
        help="Include absent fields as null.",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    if args.debug or EXIFID_DEBUG:
        logging.getLogger("exifid").setLevel(logging.DEBUG)
        for name in ("features.exif.parser", "features.exif.service", "adapters.tools.identify"):
            get_logger(name, logging.DEBUG)

    service = build_exif_service(identify_bin=args.identify, timeout=args.timeout)
    failures = 0
    for path in args.paths:
        # Tag every log record for this file with its name
        token = request_id_var.set(os.path.basename(path))
        try:
            result = service.extract_exif(path)
        finally:
            request_id_var.reset(token)
        if result.ok and result.data is not None:
            payload = {"path": path, "ok": True, "exif": result.data.to_dict(include_absent=args.all)}
        else:
            failures += 1
            payload = {
                "path": path,
                "ok": False,
                "code": result.code,
                "error": sanitize_error_message(result.error, "EXIF extraction failed"),
            }
        sys.stdout.write(json.dumps(payload, ensure_ascii=False) + "\n")
    return 1 if failures else 0
