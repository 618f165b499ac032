# Copyright 2026 Firefly Software Solutions Inc
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""flighttracker server CLI.

Usage:
    flighttracker serve [--host HOST] [--port PORT] [--reload]

    Or with Python:
    python -m flighttracker.cli.serve
"""

from __future__ import annotations

import argparse
import os

import uvicorn

APP_MODULE = "flighttracker.service.app:app"


def run_server(host: str = "0.0.0.0", port: int = 8000, reload: bool = False, log_level: str = "info") -> None:
    """Run the service under uvicorn."""
    print()
    print("  flighttracker service")
    print()
    print(f"  Host:      {host}")
    print(f"  Port:      {port}")
    print(f"  Reload:    {reload}")
    print(f"  Log Level: {log_level}")
    print()
    print(f"  API Docs:  http://{host}:{port}/docs")
    print(f"  Health:    http://{host}:{port}/health")
    print()

    uvicorn.run(APP_MODULE, host=host, port=port, reload=reload, log_level=log_level)


def main() -> None:
    """Main entry point for the serve command."""
    parser = argparse.ArgumentParser(description="Start the flighttracker service")
    parser.add_argument("--host", default=os.environ.get("FLIGHTTRACKER_HOST", "0.0.0.0"))
    parser.add_argument("--port", type=int, default=int(os.environ.get("FLIGHTTRACKER_PORT", "8000")))
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    parser.add_argument(
        "--log-level",
        default=os.environ.get("FLIGHTTRACKER_LOG_LEVEL", "info").lower(),
        choices=["debug", "info", "warning", "error", "critical"],
    )
    args = parser.parse_args()
    run_server(host=args.host, port=args.port, reload=args.reload, log_level=args.log_level)


if __name__ == "__main__":
    main()
