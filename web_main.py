"""
Entry point for the CardSwiss web API.

    uv run python web_main.py       ← JSON API on :8000
"""

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "cardswiss.web.app:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
