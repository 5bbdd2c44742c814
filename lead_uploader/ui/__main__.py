"""Launch the desktop window with ``python -m lead_uploader.ui``."""
from __future__ import annotations

from .app import main

if __name__ == "__main__":  # pragma: no cover - manual launch
    main()
