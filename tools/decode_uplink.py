#!/usr/bin/env python3
"""
decode_uplink.py - Command line host for the format 0x2A decoder

Usage:
    python tools/decode_uplink.py decode 2a0d18004217805935 --port 1
    python tools/decode_uplink.py decode --base64 KgEYAA== --format yaml
    python tools/decode_uplink.py encode measurement.yaml --base64
    python tools/decode_uplink.py sizes
    python tools/decode_uplink.py sizes --bitmap 0x1b

Exit status: 0 all frames decoded, 1 a frame was truncated or invalid,
2 a frame was not port 1 / format 0x2A.
"""

import argparse
import base64
import binascii
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import yaml

from decoder_config import DecoderConfig, load_config
from frame_decoder import FrameDecoder, FrameTruncatedError, not_mine_message
from frame_encoder import FrameEncoder
from frame_layout import FIELD_GROUPS, frame_length


logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_DECODE_ERROR = 1
EXIT_NOT_MINE = 2


def parse_payload(text: str, is_base64: bool = False) -> bytes:
    """Parse a hex ('2a 01 18 00', '2a011800') or base64 payload string."""
    try:
        if is_base64:
            return base64.b64decode(text, validate=True)
        return bytes.fromhex(text.replace(':', ' '))
    except (ValueError, binascii.Error) as e:
        raise ValueError(f"Invalid {'base64' if is_base64 else 'hex'} payload '{text}': {e}")


def format_record(record: dict, output_format: str) -> str:
    if output_format == 'yaml':
        return yaml.safe_dump(record, default_flow_style=False, sort_keys=False).rstrip()
    return json.dumps(record, indent=2)


def setup_logging(level: str, verbose: int = 0):
    if verbose:
        level = 'DEBUG' if verbose > 1 else 'INFO'
    logging.basicConfig(
        level=getattr(logging, level),
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        stream=sys.stderr,
    )


def cmd_decode(args, config: DecoderConfig) -> int:
    decoder = FrameDecoder(config)
    output_format = args.format or config.output_format
    errors = 0
    skipped = 0

    for text in args.payloads:
        try:
            payload = parse_payload(text, args.base64)
            result = decoder.decode(payload, args.port)
        except (ValueError, FrameTruncatedError) as e:
            print(f"Error: {e}", file=sys.stderr)
            errors += 1
            continue

        if result is None:
            print(f"Error: {not_mine_message(payload, args.port)}", file=sys.stderr)
            skipped += 1
            continue

        for w in result.warnings:
            logger.warning("%s: %s", text, w)
        print(format_record(result.data, output_format))

    if errors:
        return EXIT_DECODE_ERROR
    if skipped:
        return EXIT_NOT_MINE
    return EXIT_OK


def cmd_encode(args, config: DecoderConfig) -> int:
    try:
        data = yaml.safe_load(args.input.read_text())
    except (OSError, yaml.YAMLError) as e:
        print(f"Error: cannot read {args.input}: {e}", file=sys.stderr)
        return EXIT_DECODE_ERROR

    if not isinstance(data, dict):
        print(f"Error: {args.input} must contain a mapping of measurements", file=sys.stderr)
        return EXIT_DECODE_ERROR

    try:
        result = FrameEncoder().encode(data)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_DECODE_ERROR

    for w in result.warnings:
        logger.warning(w)

    if args.base64:
        print(base64.b64encode(result.payload).decode('ascii'))
    else:
        print(result.payload.hex())
    print(f"# bitmap 0x{result.bitmap:02X}, {len(result.payload)} bytes", file=sys.stderr)
    return EXIT_OK


def cmd_sizes(args, config: DecoderConfig) -> int:
    if args.bitmap is not None:
        bitmaps = [args.bitmap]
    else:
        bitmaps = range(0x80)

    print("Flagged groups:")
    for group in FIELD_GROUPS:
        print(f"  bit {group.bit}: +{group.size} bytes ({', '.join(group.keys)})")
    print()

    print(f"{'Bitmap':<8} {'Size':>4}  Groups")
    for bitmap in bitmaps:
        names = [g.name for g in FIELD_GROUPS if bitmap & g.mask]
        print(f"0x{bitmap:02X}     {frame_length(bitmap):>4}  {', '.join(names) or '(none)'}")

    full = sum(g.mask for g in FIELD_GROUPS)
    print()
    print(f"Min payload: {frame_length(0)} bytes")
    print(f"Max payload: {frame_length(full)} bytes")
    return EXIT_OK


def _int_auto(text: str) -> int:
    return int(text, 0)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Catena port 1 / format 0x2A uplink decoder')
    parser.add_argument('-c', '--config', type=Path, help='YAML config file')
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='Increase log verbosity (-v info, -vv debug)')
    subparsers = parser.add_subparsers(dest='command', required=True)

    dec = subparsers.add_parser('decode', help='Decode uplink payloads')
    dec.add_argument('payloads', nargs='+', help='Payloads as hex (or base64 with --base64)')
    dec.add_argument('-p', '--port', type=int, default=1, help='LoRaWAN fPort (default: 1)')
    dec.add_argument('--base64', action='store_true', help='Payloads are base64')
    dec.add_argument('-f', '--format', choices=['json', 'yaml'], help='Output format')

    enc = subparsers.add_parser('encode', help='Encode measurements (YAML/JSON) to a frame')
    enc.add_argument('input', type=Path, help='Measurement file')
    enc.add_argument('--base64', action='store_true', help='Output as base64')

    siz = subparsers.add_parser('sizes', help='Frame length for each bitmap')
    siz.add_argument('--bitmap', type=_int_auto, help='Single bitmap (e.g. 0x1b)')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_DECODE_ERROR

    setup_logging(config.log_level, args.verbose)

    commands = {
        'decode': cmd_decode,
        'encode': cmd_encode,
        'sizes': cmd_sizes,
    }
    return commands[args.command](args, config)


if __name__ == '__main__':
    sys.exit(main())
