#!/usr/bin/env python3
"""Merge selected slides from a source deck into a copy of a target deck.

Usage:
    python scripts/merge_slides.py -s source.pptx -t target.pptx --slides 1,3,5-7
    python scripts/merge_slides.py -s source.pptx -t target.pptx -o merged.pptx -c merge.yaml
"""

import sys
from pathlib import Path

# Add src/ to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from slidemerge.cli import main


if __name__ == "__main__":
    sys.exit(main())
