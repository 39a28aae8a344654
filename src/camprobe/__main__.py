"""Module entrypoint for ``python -m camprobe``."""

from __future__ import annotations

from camprobe.cli import main

if __name__ == "__main__":
    main()
