from __future__ import annotations

import os

import uvicorn


def main() -> None:
    uvicorn.run(
        "pong.main:app",
        host=os.environ.get("PONG_HOST", "127.0.0.1"),
        port=int(os.environ.get("PONG_PORT", "3000")),
    )


if __name__ == "__main__":
    main()
