#!/usr/bin/env python3
"""
Scan Extractor — Entry Point
=============================

Demonstrates both extraction pipelines on sample OCR output, or on a file.

Usage:
    python main.py                                  # Bundled passport + deed samples
    python main.py scan.txt                         # Identity extraction on a file
    python main.py scan.txt --type driver_license   # ... as a driver license
    python main.py deed.txt --property              # Property extraction on a file
    LOG_LEVEL=DEBUG python main.py                  # Show strategy hits
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from scan_extractor.config import ExtractionSettings
from scan_extractor.models import DocumentType, IdentityReport, PropertyReport, Severity
from scan_extractor.pipeline import ExtractionPipeline

load_dotenv()


# ─── Sample OCR Output, Ugly on Purpose ────────────────────────────

SAMPLE_PASSPORT_TEXT = """\
MALAYSIA   PASPORT / PASSPORT
Jenis/Type P   Kod Negara/Country Code MYS
Passport No. / No. Pasport  A12345678
Nama/Name  JOHN BIN AHMAD DOE
Tarikh lahir/Date of birth 14 MEI 1990
Date of issue 03/02/2021   Date of expiry 03/02/2026
PKMYSDOEKKJOHNKBINKAHMADKKKKKKKKKKKKKKKKKKKKK
A123456780MYS9005148M2602036<<<<<<<<<<<<<<02"""

SAMPLE_DEED_TEXT = """\
*** RECORDING REQ ***
GRANT DEED
Deed Number: D123456
Property Address: 12 Oak Street, Springfield, IL 62704
Owner Name: Jane  Doe
Tax ID: TX-4821
*** END ***"""


# ─── ANSI Color Constants ───────────────────────────────────────────

_YELLOW = "\033[93m"
_GREEN = "\033[92m"
_CYAN = "\033[96m"
_DIM = "\033[2m"
_BOLD = "\033[1m"
_RESET = "\033[0m"
_WIDTH = 72


# ─── Pretty Printer Helpers ─────────────────────────────────────────


def _print_fields(fields, provenance) -> None:
    """Print every field with the strategy that produced it."""
    for name, value in fields.model_dump().items():
        label = f"{name.replace('_', ' ').title()}:"
        if value is None:
            print(f"  {label:<18}{_DIM}—{_RESET}")
        else:
            strategy = provenance[name].value
            print(f"  {label:<18}{_BOLD}{value}{_RESET}  {_DIM}({strategy}){_RESET}")


def _print_findings(findings) -> None:
    warnings = [f for f in findings if f.severity == Severity.WARNING]
    infos = [f for f in findings if f.severity == Severity.INFO]

    if warnings:
        print(f"\n  {_YELLOW}{_BOLD}WARNINGS ({len(warnings)}){_RESET}")
        for f in warnings:
            print(f"    {_YELLOW}[{f.code}]{_RESET}")
            print(f"    {f.message}")
            for k, v in f.details.items():
                print(f"      {_DIM}{k}: {v}{_RESET}")
            print()

    if infos:
        print(f"  {_CYAN}INFO ({len(infos)}){_RESET}")
        for f in infos:
            print(f"    [{f.code}] {f.message}")
        print()


def _print_header(title: str) -> None:
    print(f"\n{'=' * _WIDTH}")
    print(f"{_BOLD}{_CYAN}  {title}{_RESET}")
    print(f"{'=' * _WIDTH}")


def _print_footer(fields) -> None:
    found = len(fields.model_dump(exclude_none=True))
    total = len(type(fields).model_fields)
    color = _GREEN if found == total else _YELLOW
    print(f"{'=' * _WIDTH}")
    print(f"  {color}{_BOLD}{found}/{total} FIELDS EXTRACTED{_RESET}")
    print(f"{'=' * _WIDTH}\n")


# ─── Pretty Printers ────────────────────────────────────────────────


def print_identity_report(report: IdentityReport) -> None:
    _print_header("IDENTITY EXTRACTION REPORT")
    print(f"  Document:    {report.document_type.value}")
    if report.mrz_line:
        print(f"  MRZ:         {_DIM}{report.mrz_line}{_RESET}")
    print(f"{'─' * _WIDTH}")
    _print_fields(report.fields, report.provenance)
    print(f"{'─' * _WIDTH}")
    _print_findings(report.findings)
    _print_footer(report.fields)


def print_property_report(report: PropertyReport) -> None:
    _print_header("PROPERTY EXTRACTION REPORT")
    print(f"{'─' * _WIDTH}")
    _print_fields(report.fields, report.provenance)
    print(f"{'─' * _WIDTH}")
    _print_findings(report.findings)
    _print_footer(report.fields)


# ─── Main ────────────────────────────────────────────────────────────


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Extract fields from OCR text.")
    parser.add_argument("path", nargs="?", type=Path, help="OCR text file (UTF-8)")
    parser.add_argument(
        "--type",
        dest="document_type",
        choices=[t.value for t in DocumentType],
        default=DocumentType.PASSPORT.value,
        help="Identity document type (default: passport)",
    )
    parser.add_argument(
        "--property",
        action="store_true",
        help="Treat the file as a property deed",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Run the extractors and print their reports."""
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )
    args = _parse_args(argv)
    pipeline = ExtractionPipeline(ExtractionSettings.from_env())

    if args.path is None:
        print("\n  Starting Scan Extractor...")
        print("  Analyzing bundled sample scans...\n")
        print_identity_report(pipeline.extract_identity(SAMPLE_PASSPORT_TEXT))
        print_property_report(pipeline.extract_property(SAMPLE_DEED_TEXT))
        return 0

    try:
        raw_text = args.path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        print(f"  Cannot read {args.path}: {e}", file=sys.stderr)
        return 2

    if args.property:
        print_property_report(pipeline.extract_property(raw_text))
    else:
        print_identity_report(pipeline.extract_identity(raw_text, args.document_type))
    return 0


if __name__ == "__main__":
    sys.exit(main())
