#!/usr/bin/env python3
"""
fuzz_decoder.py - Fuzz test the format 0x2A frame decoder

The decoder has exactly three legal outcomes for any input: a record,
None (not mine), or FrameTruncatedError. Anything else raised, or a
record holding keys for bits that were not set, counts as a crash.

Usage:
    python tools/fuzz_decoder.py                          # 10 second fuzz
    python tools/fuzz_decoder.py --duration 60            # 1 minute fuzz
    python tools/fuzz_decoder.py --seed 12345             # Reproducible
    python tools/fuzz_decoder.py --vectors tests/vectors/format_0x2a.yaml
"""

import argparse
import random
import sys
import time
import yaml
from pathlib import Path
from dataclasses import dataclass, field
from typing import List, Optional

sys.path.insert(0, str(Path(__file__).parent))
from frame_decoder import FrameDecoder, FrameTruncatedError
from frame_encoder import encode_frame
from frame_layout import FIELD_GROUPS, FORMAT_TAG, LORAWAN_PORT


SEED_MEASUREMENTS = [
    {'battery_voltage': 3.3},
    {'battery_voltage': 3.7, 'bus_voltage': 4.9, 'boot_count': 7},
    {'temperature_c': 23.5, 'humidity_pct': 50.0},
    {'temperature_c': 35.0, 'humidity_pct': 70.0, 'lux': 1234.5},
    {'battery_voltage': 3.6, 'bus_voltage': 0.0, 'boot_count': 255,
     'temperature_c': -5.25, 'humidity_pct': 99.0, 'lux': 0.001,
     'probe_one_temperature_c': 55.0, 'probe_two_temperature_c': -12.5},
]


@dataclass
class FuzzStats:
    """Statistics from a fuzz run."""
    total_inputs: int = 0
    decode_success: int = 0
    not_mine: int = 0
    decode_error: int = 0
    crashes: int = 0
    duration_sec: float = 0.0
    seed: int = 0
    crash_inputs: List[bytes] = field(default_factory=list)

    @property
    def inputs_per_sec(self) -> float:
        if self.duration_sec > 0:
            return self.total_inputs / self.duration_sec
        return 0.0


def load_vector_payloads(path: Path) -> List[bytes]:
    """Extract payloads from a YAML test vector file."""
    with open(path) as f:
        doc = yaml.safe_load(f) or {}
    payloads = []
    for tv in doc.get('test_vectors', []):
        payload = tv.get('payload', '')
        if isinstance(payload, list):
            payloads.append(bytes(payload))
        elif isinstance(payload, str):
            payloads.append(bytes.fromhex(payload.replace('0x', '')))
    return payloads


class DecoderFuzzer:
    """Fuzz tester for the frame decoder."""

    def __init__(self, seed: Optional[int] = None, valid_payloads: Optional[List[bytes]] = None):
        self.decoder = FrameDecoder()
        self.seed = seed if seed is not None else random.randint(0, 2**32)
        self.rng = random.Random(self.seed)
        self.stats = FuzzStats(seed=self.seed)
        self.valid_payloads = valid_payloads or [encode_frame(m) for m in SEED_MEASUREMENTS]

    def generate_random_bytes(self, min_len: int = 0, max_len: int = 64) -> bytes:
        """Generate random byte sequence."""
        length = self.rng.randint(min_len, max_len)
        return bytes(self.rng.randint(0, 255) for _ in range(length))

    def generate_tagged(self) -> bytes:
        """Format tag, random bitmap, random-length body."""
        return bytes([FORMAT_TAG, self.rng.randint(0, 255)]) + self.generate_random_bytes(0, 20)

    def generate_truncated(self, valid_payload: bytes) -> bytes:
        """Generate truncated version of valid payload."""
        if len(valid_payload) == 0:
            return b''
        cut_point = self.rng.randint(0, len(valid_payload) - 1)
        return valid_payload[:cut_point]

    def generate_extended(self, valid_payload: bytes) -> bytes:
        """Generate extended version of valid payload."""
        return valid_payload + self.generate_random_bytes(1, 20)

    def generate_bitflip(self, valid_payload: bytes) -> bytes:
        """Flip random bits in valid payload, keeping the format tag."""
        if len(valid_payload) < 2:
            return valid_payload
        data = bytearray(valid_payload)
        num_flips = self.rng.randint(1, max(1, len(data) // 2))
        for _ in range(num_flips):
            pos = self.rng.randint(1, len(data) - 1)
            data[pos] ^= (1 << self.rng.randint(0, 7))
        return bytes(data)

    def _check_record(self, payload: bytes, data: dict) -> bool:
        bitmap = payload[1]
        for group in FIELD_GROUPS:
            present = any(k in data for k in group.keys)
            if present != bool(bitmap & group.mask):
                return False
        return True

    def fuzz_one(self, payload: bytes, port: int = LORAWAN_PORT) -> bool:
        """
        Fuzz with one payload.
        Returns True if decoder handled it safely, False if crash.
        """
        self.stats.total_inputs += 1
        try:
            result = self.decoder.decode(payload, port)
        except FrameTruncatedError:
            self.stats.decode_error += 1
            return True
        except Exception:
            self.stats.crashes += 1
            self.stats.crash_inputs.append(payload)
            return False

        if result is None:
            self.stats.not_mine += 1
            return True
        if not self._check_record(payload, result.data):
            self.stats.crashes += 1
            self.stats.crash_inputs.append(payload)
            return False
        self.stats.decode_success += 1
        return True

    def run(self, duration_sec: float = 10.0, max_inputs: Optional[int] = None) -> FuzzStats:
        """Run fuzzing for a duration, or until max_inputs have been tried."""
        start_time = time.time()
        end_time = start_time + duration_sec

        generators = [
            lambda: self.generate_random_bytes(0, 64),
            lambda: self.generate_random_bytes(0, 4),
            self.generate_tagged,
            lambda: self.generate_truncated(self.rng.choice(self.valid_payloads)),
            lambda: self.generate_extended(self.rng.choice(self.valid_payloads)),
            lambda: self.generate_bitflip(self.rng.choice(self.valid_payloads)),
            lambda: bytes([FORMAT_TAG, 0x7F]),
            lambda: bytes([FORMAT_TAG]),
            lambda: b'',
        ]

        while time.time() < end_time:
            if max_inputs is not None and self.stats.total_inputs >= max_inputs:
                break
            payload = self.rng.choice(generators)()
            port = LORAWAN_PORT if self.rng.random() < 0.9 else self.rng.randint(0, 255)
            self.fuzz_one(payload, port)

        self.stats.duration_sec = time.time() - start_time
        return self.stats


def print_stats(stats: FuzzStats):
    """Print fuzzing statistics."""
    print("\nDecoder Fuzzing Results")
    print("=" * 50)
    print(f"Seed: {stats.seed}")
    print(f"Duration: {stats.duration_sec:.1f}s")
    print(f"Total inputs: {stats.total_inputs}")
    print(f"Rate: {stats.inputs_per_sec:.0f} inputs/sec")
    print(f"Decode success: {stats.decode_success}")
    print(f"Not mine: {stats.not_mine}")
    print(f"Truncated: {stats.decode_error} (expected)")
    print(f"Crashes: {stats.crashes}")

    if stats.crashes > 0:
        print("\nCRASH INPUTS (reproducible with --seed):")
        for i, payload in enumerate(stats.crash_inputs[:5]):
            print(f"  {i+1}: {payload.hex()}")
        print("\nFAILED: Decoder crashed on malformed input!")
    else:
        print("\nPASSED: No crashes detected")


def main():
    parser = argparse.ArgumentParser(description='Fuzz test the format 0x2A frame decoder')
    parser.add_argument('-d', '--duration', type=float, default=10.0,
                        help='Fuzz duration in seconds (default: 10)')
    parser.add_argument('-s', '--seed', type=int,
                        help='Random seed for reproducibility')
    parser.add_argument('--vectors', type=Path,
                        help='YAML test vectors to seed mutations from')
    args = parser.parse_args()

    valid_payloads = load_vector_payloads(args.vectors) if args.vectors else None
    fuzzer = DecoderFuzzer(seed=args.seed, valid_payloads=valid_payloads)
    stats = fuzzer.run(args.duration)
    print_stats(stats)

    sys.exit(1 if stats.crashes > 0 else 0)


if __name__ == '__main__':
    main()
