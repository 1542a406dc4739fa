#!/usr/bin/env python3
"""
VIN Verify CLI - Command Line Interface
=======================================

Each invocation is one verification session.

Usage:
    vin-verify match  --csv A.csv [--csv B.csv] TEXT|@FILE ...   Verify recognized text
    vin-verify scan   --csv A.csv IMAGE ...                      Recognize and verify media
    vin-verify status --csv A.csv [--verified ID ...]            Show verification status
    vin-verify export --csv A.csv [--verified ID ...] [-o OUT]   Export unverified rows
"""

import argparse
import json
import sys
from pathlib import Path


def _load_session(args):
    from vin_verify.session import VerificationSession
    from vin_verify.sources import SourceItem
    
    session = VerificationSession()
    ok = True
    for path in args.csv:
        if not Path(path).exists():
            print(f"Error: CSV not found: {path}", file=sys.stderr)
            ok = False
            continue
        result = session.ingest_item(SourceItem.from_path(path))
        if not args.json:
            print(result.message)
        ok = ok and result.ok
    return session, ok


def _record_verified(session, identifiers):
    """Replay identifiers confirmed earlier into this session's ledger."""
    missing = []
    for identifier in identifiers or []:
        result = session.match(identifier)
        if result is None:
            missing.append(identifier)
        else:
            session.ledger.record(result)
    for identifier in missing:
        print(f"Warning: {identifier} is not in any loaded CSV", file=sys.stderr)


def _read_text_arg(value: str) -> str:
    if value.startswith('@'):
        return Path(value[1:]).read_text(encoding='utf-8')
    return value


def _print_outcomes(outcomes, as_json: bool):
    if as_json:
        print(json.dumps([o.to_dict() for o in outcomes], indent=2, ensure_ascii=False))
        return
    for outcome in outcomes:
        if outcome.source:
            print(f"--- {outcome.source}")
        print(outcome.message)
        print()


def cmd_match(args):
    """Verify recognized text against the loaded CSVs."""
    session, _ = _load_session(args)
    outcomes = []
    for value in args.texts:
        try:
            text = _read_text_arg(value)
        except OSError as e:
            print(f"Error: cannot read {value[1:]}: {e}", file=sys.stderr)
            return 1
        outcomes.append(session.verify_text(text, source=value if value.startswith('@') else None))
    _print_outcomes(outcomes, args.json)
    return 0 if all(o.is_verified for o in outcomes) else 1


def cmd_scan(args):
    """Recognize images/documents with a provider and verify them."""
    from vin_verify.providers import RecognitionProviderFactory
    from vin_verify.sources import SourceItem
    
    session, _ = _load_session(args)
    provider = RecognitionProviderFactory.create(args.provider)
    
    items = []
    for path in args.files:
        if not Path(path).exists():
            print(f"Error: File not found: {path}", file=sys.stderr)
            return 1
        items.append(SourceItem.from_path(path))
    
    outcomes = session.process_sources(items, provider=provider)
    _print_outcomes(outcomes, args.json)
    return 0 if all(getattr(o, 'is_verified', False) for o in outcomes) else 1


def cmd_status(args):
    """Show verified/unverified status."""
    session, _ = _load_session(args)
    _record_verified(session, args.verified)
    status = session.status()
    
    if args.json:
        print(json.dumps(status.to_dict(), indent=2, ensure_ascii=False))
    else:
        print(status.message)
        for skipped in status.skipped:
            print(f"Skipped: {skipped.message}")
    return 0


def cmd_export(args):
    """Write unverified rows to a CSV file."""
    session, _ = _load_session(args)
    _record_verified(session, args.verified)
    status = session.status()
    
    if status.is_complete:
        print(status.message)
        return 0
    
    artifact = session.export(status)
    output = Path(args.output) if args.output else Path(artifact.filename)
    output.write_bytes(artifact.data)
    print(f"Exported {artifact.row_count} unverified rows to: {output}")
    return 0


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog='vin-verify',
        description='Verify captured vehicle documents against reference CSV files',
    )
    parser.add_argument('--version', action='version', version='%(prog)s 1.0.0')
    parser.add_argument('--config', help='JSON or YAML configuration file')
    parser.add_argument('--log-level', help='Override log level (DEBUG, INFO, ...)')
    
    subparsers = parser.add_subparsers(dest='command', help='Available commands')
    
    def add_common(sub):
        sub.add_argument('--csv', action='append', required=True, help='Reference CSV (repeatable)')
        sub.add_argument('--json', action='store_true', help='Output as JSON')
    
    match_parser = subparsers.add_parser('match', help='Verify recognized text')
    add_common(match_parser)
    match_parser.add_argument('texts', nargs='+', help='Recognized text, or @file to read it')
    
    scan_parser = subparsers.add_parser('scan', help='Recognize and verify images/documents')
    add_common(scan_parser)
    scan_parser.add_argument('files', nargs='+', help='Image, PDF or audio files')
    scan_parser.add_argument('--provider', '-p', choices=['paddleocr', 'gemini'],
                             help='Recognition provider (default from config)')
    
    status_parser = subparsers.add_parser('status', help='Show verification status')
    add_common(status_parser)
    status_parser.add_argument('--verified', nargs='*', default=[], help='Identifiers already verified')
    
    export_parser = subparsers.add_parser('export', help='Export unverified rows')
    add_common(export_parser)
    export_parser.add_argument('--verified', nargs='*', default=[], help='Identifiers already verified')
    export_parser.add_argument('--output', '-o', help='Output CSV path (default: dated filename)')
    
    args = parser.parse_args()
    
    if args.command is None:
        parser.print_help()
        return 1
    
    from vin_verify.config import load_config, set_config
    config = load_config(args.config)
    if args.log_level:
        config.logging.level = args.log_level
    set_config(config)
    
    commands = {
        'match': cmd_match,
        'scan': cmd_scan,
        'status': cmd_status,
        'export': cmd_export,
    }
    
    return commands[args.command](args)


if __name__ == '__main__':
    sys.exit(main())
