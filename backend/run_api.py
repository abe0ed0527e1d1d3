"""Local dev entrypoint for the schemaforge API."""

from __future__ import annotations

import os
import sys
from pathlib import Path


def _ensure_src_on_path() -> None:
    backend_dir = Path(__file__).resolve().parent
    src_dir = backend_dir / "src"
    if str(src_dir) not in sys.path:
        sys.path.insert(0, str(src_dir))


if __name__ == "__main__":
    _ensure_src_on_path()

    # Metadata lives next to backend/, not inside it
    repo_root = Path(__file__).resolve().parent.parent
    os.environ.setdefault("SCHEMAFORGE_METADATA_PATH", str(repo_root / "metadata"))

    import uvicorn

    uvicorn.run(
        "schemaforge.api:app",
        host="127.0.0.1",
        port=int(os.environ.get("SCHEMAFORGE_PORT", "8000")),
        reload=True,
        log_level=os.environ.get("SCHEMAFORGE_LOG_LEVEL", "debug").lower(),
    )
