#!/usr/bin/env python3
"""Rebuild call transcripts from TRANSCRIPT_DUMP log lines.

Usage:
    python scripts/call_transcript.py server.log            # last call, human-readable
    python scripts/call_transcript.py server.log --raw      # last call, raw JSON
    python scripts/call_transcript.py server.log --attempt 3
    some-log-command | python scripts/call_transcript.py    # read stdin
"""

import argparse
import json
import sys


def parse_transcript_lines(lines: list[str], attempt: int | None = None) -> list[dict]:
    """Parse TRANSCRIPT_DUMP lines from log output into transcript dicts.

    Handles multi-chunk reassembly. Returns list of complete transcripts
    (most recent last). If attempt is given, keeps only that attempt.
    """
    chunk_groups: dict[int, dict[int, str]] = {}
    group_counter = 0

    for line in lines:
        if "TRANSCRIPT_DUMP|" not in line:
            continue

        dump_part = line[line.index("TRANSCRIPT_DUMP|"):]
        parts = dump_part.split("|", 2)
        if len(parts) < 3:
            continue

        try:
            chunk_num, _total = (int(n) for n in parts[1].split("/"))
        except ValueError:
            continue

        if chunk_num == 1:
            group_counter += 1
        chunk_groups.setdefault(group_counter, {})[chunk_num] = parts[2]

    transcripts = []
    for group_id in sorted(chunk_groups):
        chunks = chunk_groups[group_id]
        try:
            first = json.loads(chunks.get(1, "{}"))
        except json.JSONDecodeError:
            continue

        if attempt is not None and first.get("attempt") != attempt:
            continue

        all_entries = list(first.get("entries", []))
        for i in sorted(chunks):
            if i == 1:
                continue
            try:
                all_entries.extend(json.loads(chunks[i]).get("entries", []))
            except json.JSONDecodeError:
                continue

        first["entries"] = all_entries
        transcripts.append(first)

    return transcripts


def format_transcript(transcript: dict, gap_threshold: float = 2.0) -> str:
    """Format a transcript dict as a readable timeline with gap annotations."""
    lines = []

    attempt = transcript.get("attempt", "?")
    mode = transcript.get("mode", "unknown")
    duration = transcript.get("duration_s", 0)
    final_status = transcript.get("final_status", "unknown")
    lines.append(f"Attempt {attempt} | {mode} | {duration}s | {final_status}")
    lines.append("═" * 55)
    lines.append("")

    labels = {"assistant": "Interviewer", "user": "Candidate", "system": "System"}
    entries = transcript.get("entries", [])
    prev_t = None

    for entry in entries:
        t = entry.get("t", 0.0)
        if prev_t is not None:
            gap = t - prev_t
            if gap >= 5.0:
                lines.append(f"      ┆ +{gap:.1f}s ⚠ SLOW")
            elif gap >= gap_threshold:
                lines.append(f"      ┆ +{gap:.1f}s")

        label = labels.get(entry.get("role", ""), entry.get("role", "?"))
        lines.append(f"{t:5.1f}s {label}: {entry.get('content', '')}")
        prev_t = t

    if entries:
        lines.append(f"{duration:5.1f}s ☎ Call ended")

    return "\n".join(lines)


def main():
    parser = argparse.ArgumentParser(description="Rebuild a call transcript from server logs")
    parser.add_argument("logfile", nargs="?", help="Log file to read (default: stdin)")
    parser.add_argument("--raw", action="store_true", help="Output raw JSON")
    parser.add_argument("--attempt", type=int, default=None, help="Filter by call attempt number")
    parser.add_argument("--gap-threshold", type=float, default=2.0, help="Gap threshold in seconds (default: 2.0)")
    args = parser.parse_args()

    if args.logfile:
        try:
            with open(args.logfile, encoding="utf-8") as f:
                lines = f.read().splitlines()
        except OSError as e:
            print(f"Error: cannot read {args.logfile}: {e}", file=sys.stderr)
            sys.exit(1)
    else:
        lines = sys.stdin.read().splitlines()

    transcripts = parse_transcript_lines(lines, attempt=args.attempt)
    if not transcripts:
        print("No TRANSCRIPT_DUMP lines found.", file=sys.stderr)
        sys.exit(1)

    transcript = transcripts[-1]
    if args.raw:
        print(json.dumps(transcript, indent=2))
    else:
        print(format_transcript(transcript, gap_threshold=args.gap_threshold))


if __name__ == "__main__":
    main()
