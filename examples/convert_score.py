#!/usr/bin/env python3
"""
Example: Convert a LilyPond score to a Strudel program.

Usage:
    python examples/convert_score.py [path/to/score.ly]
    # Creates: examples/output/<score>.strudel.js

The default score pulls its drum parts in with \\include, defines its
melody as a variable and uses volta repeats, so the output shows:
1. Includes resolved relative to the including file
2. Volta repeats kept as !N instead of duplicated bars
3. Directive comments turned into .gain/.pan/._punchcard calls
4. Validation warnings for layouts that may not play as written
"""

import sys
from pathlib import Path

from chuk_mcp_strudel.compiler import convert_file


def main() -> None:
    examples_dir = Path(__file__).parent
    score = Path(sys.argv[1]) if len(sys.argv) > 1 else examples_dir / "scores" / "demo.ly"
    output_dir = examples_dir / "output"
    output_dir.mkdir(exist_ok=True)

    print("CHUK Strudel Score Converter")
    print("=" * 40)
    print(f"Score: {score}")
    print()

    result = convert_file(score)
    summary = result.summary()

    print("Structure:")
    print(f"  Tempo: {summary['tempo']} BPM")
    for index, staff in enumerate(summary["staves"], start=1):
        print(
            f"  Staff {index}: {staff['type']}, {staff['voices']} voice(s), "
            f"played bars {staff['played_bars']}"
        )
    if summary["variables"]:
        print(f"  Variables: {', '.join(summary['variables'])}")
    print(f"  Notes: {summary['total_notes']}  Drum hits: {summary['total_drum_hits']}")
    print()

    if result.validation.issues:
        print("Validation:")
        for issue in result.validation.issues:
            print(f"  {issue}")
        print()

    output_path = output_dir / f"{score.stem}.strudel.js"
    output_path.write_text(result.strudel, encoding="utf-8")

    print("Strudel:")
    print(result.strudel)
    print(f"Output: {output_path}")
    print("Paste it into https://strudel.cc to hear it.")


if __name__ == "__main__":
    main()
