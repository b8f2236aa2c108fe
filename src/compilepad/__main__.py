"""Package entry point.

Enables running the project with:

    python -m compilepad ...
"""

from __future__ import annotations

from compilepad import main

if __name__ == "__main__":
    main()
