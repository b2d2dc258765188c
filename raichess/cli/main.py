from __future__ import annotations

import argparse
from typing import List, Optional

import uvicorn


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Serve the RaiChess HTTP API")
    parser.add_argument("--host", type=str, default="0.0.0.0", help="Bind address")
    parser.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    parser.add_argument(
        "--log-level", type=str, default="info", help="uvicorn log level (default: info)"
    )
    args = parser.parse_args(argv)
    uvicorn.run(
        "raichess.protocol.http.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
