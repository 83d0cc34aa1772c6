"""Script de ejecución.

Por qué existe:
- Permite ejecutar la CLI con `python -m main` desde `src/`.
- Mantiene un entrypoint simple además del script `patrimonia`.
"""

from __future__ import annotations

import sys

# Rich imprime acentos (ã, ç, ê); consolas Windows con cp1252 fallan sin esto.
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8")
    sys.stderr.reconfigure(encoding="utf-8")

from cli.main import run


def main() -> None:
    run()


if __name__ == "__main__":
    main()
