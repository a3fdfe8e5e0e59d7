"""Allow ``python -m makeweave``."""

from makeweave.cli import main

main()
