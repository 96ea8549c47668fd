from __future__ import annotations

# Absolute import so `python -m promptgen` and frozen builds behave the same
from promptgen.cli import main


if __name__ == "__main__":
    main()
