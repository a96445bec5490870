"""Betfunnels Copy — dev launcher. Starts the API in watch mode."""

import argparse
import os
import subprocess
import sys
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "0.0.0.0")
BACKEND_PORT = os.getenv("BACKEND_PORT", "13013")


def main():
    parser = argparse.ArgumentParser(description="Betfunnels Copy dev launcher")
    parser.add_argument("--data-dir", type=Path, default=None,
                        help="JSON template store directory (default: ./data)")
    parser.add_argument("--demo", action="store_true",
                        help="Clean and create demo master guide and casinos")
    parser.add_argument("--host", default=HOST, help=f"Bind address (default: {HOST})")
    parser.add_argument("--port", default=BACKEND_PORT, help=f"Port (default: {BACKEND_PORT})")
    parser.add_argument("--log-level", default="info",
                        choices=["critical", "error", "warning", "info", "debug"],
                        help="Uvicorn log level (default: info)")
    args = parser.parse_args()

    if args.demo:
        from backend.demo import create_demo_data
        from betfunnels.storage import JsonTemplateStore
        data_dir = args.data_dir or ROOT / "data"
        create_demo_data(JsonTemplateStore(data_dir))
        print(f"Demo data written to {data_dir}")

    # Build env for the subprocess so the backend picks up the same data dir
    env = os.environ.copy()
    if args.data_dir:
        env["DATA_DIR"] = str(args.data_dir.resolve())

    print(f"Starting backend on http://localhost:{args.port} ...")
    proc = subprocess.Popen(
        [sys.executable, "-m", "uvicorn", "backend.app:app", "--reload",
         "--host", args.host, "--port", str(args.port), "--log-level", args.log_level],
        cwd=ROOT, env=env,
    )
    try:
        proc.wait()
    except KeyboardInterrupt:
        print("\nShutting down...")
        proc.terminate()
        proc.wait()


if __name__ == "__main__":
    main()
