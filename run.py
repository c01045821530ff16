import os

import uvicorn

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8000))
    # Facet index and row store client are per-process singletons; more
    # workers just means more copies of them, each warmed on startup.
    workers = int(os.environ.get("WEB_CONCURRENCY", 1))
    uvicorn.run(
        "rim_catalog.main:app",
        host="0.0.0.0",
        port=port,
        workers=workers,
    )
