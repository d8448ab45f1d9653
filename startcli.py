"""Run hhflow from a source checkout: ``python startcli.py resumes --companies list.csv``.

Takes the same subcommands as the installed ``hhflow`` script
(``resumes``, ``vacancies``, ``validate``, ``contacts``, ``limits``).
"""
from __future__ import annotations

import sys

from hhflow.cli import main


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
