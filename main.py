"""Run the emulator from a source checkout: ``python main.py -r 500``."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from fakemts.app import main  # noqa: E402

if __name__ == "__main__":
    sys.exit(main())
