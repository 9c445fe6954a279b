#!/usr/bin/env python3
"""
Example: Compose a drum sequence from library patterns.

Usage:
    python examples/compose_sequence.py
    # Creates: examples/output/demo.ly and examples/output/demo.strudel.js

The sequence mixes the built-in patterns with one from examples/library.
The project library is searched first, so a pattern there with a
built-in name would replace the built-in one.
"""

from pathlib import Path

from chuk_mcp_strudel.patterns import PatternLibrary
from chuk_mcp_strudel.sequencer import SequenceComposer, expand_item, load_sequence


def main() -> None:
    examples_dir = Path(__file__).parent
    output_dir = examples_dir / "output"
    output_dir.mkdir(exist_ok=True)

    sequence_file = examples_dir / "demo.sequence.yaml"
    builtin_path = examples_dir.parent / "src/chuk_mcp_strudel/patterns/library"
    library = PatternLibrary([examples_dir / "library", builtin_path])

    print("CHUK Strudel Sequencer")
    print("=" * 40)
    print(f"Sequence: {sequence_file.name}")
    print(f"Libraries: {', '.join(str(p) for p in library.library_paths)}")
    print()

    sequence = load_sequence(sequence_file)

    print("Patterns:")
    for name in sequence.pattern_names():
        pattern = library.get_pattern(name)
        print(f"  {name} ({len(pattern.voices)} voices): {pattern.description}")
    print()

    print("Sequence:")
    for entry in sequence.sequence:
        expansion = expand_item(entry.item)
        label = f" x{expansion.repeat}" if expansion.repeat > 1 else ""
        uses = ", ".join(f"{u.pattern_name}x{u.count}" for u in expansion.pattern_uses())
        print(f"  {entry.description or '-'}{label}: {uses} ({expansion.played_bars} bars)")
    print()

    result = SequenceComposer(library).render(sequence)

    lilypond_path = output_dir / "demo.ly"
    lilypond_path.write_text(result.lilypond, encoding="utf-8")
    strudel_path = output_dir / "demo.strudel.js"
    strudel_path.write_text(result.strudel, encoding="utf-8")

    print(f"Total bars: {result.total_bars}")
    print()
    print(result.strudel)
    print(f"LilyPond: {lilypond_path}")
    print(f"Strudel:  {strudel_path}")


if __name__ == "__main__":
    main()
