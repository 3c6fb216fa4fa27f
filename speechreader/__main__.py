"""Module entrypoint for running speechreader as ``python -m speechreader``."""

from __future__ import annotations

from speechreader.cli import main


if __name__ == "__main__":
    main()
