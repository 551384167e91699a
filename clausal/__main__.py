"""Allow running CLAUSAL as ``python -m clausal``."""

from clausal.cli import main

main()
