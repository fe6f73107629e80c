#!/usr/bin/env python3
"""
Run The Lens locally: the mock backend on :8001 and the storefront on :8000.

Both apps run under uvicorn with --reload. The storefront is started once the
backend answers its health check, so the first catalog request does not fail.
"""

import shutil
import subprocess
import sys
import time
from pathlib import Path

import httpx

PROJECT_ROOT = Path(__file__).resolve().parent.parent
CONFIG_DIR = PROJECT_ROOT / "config"

# (label, uvicorn app, port)
SERVICES = [
    ("Mock backend", "mock_backend.main:app", 8001),
    ("Storefront", "storefront.main:app", 8000),
]


def ensure_env_file() -> None:
    """Create config/.env from the example on first run"""
    env_file = CONFIG_DIR / ".env"
    if env_file.exists():
        return

    example = CONFIG_DIR / ".env.example"
    if example.exists():
        shutil.copy(example, env_file)
        print(f"Created {env_file.relative_to(PROJECT_ROOT)} from the example; edit it to taste")
    else:
        print("No config/.env found, running with defaults")


def wait_until_healthy(port: int, timeout: float = 15.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        try:
            if httpx.get(f"http://127.0.0.1:{port}/health", timeout=1.0).status_code == 200:
                return True
        except httpx.HTTPError:
            pass
        time.sleep(0.3)
    return False


def launch(app: str, port: int) -> subprocess.Popen:
    command = [sys.executable, "-m", "uvicorn", app, "--reload", "--host", "0.0.0.0", "--port", str(port)]
    return subprocess.Popen(command, cwd=PROJECT_ROOT)


def main() -> None:
    ensure_env_file()

    running: list[subprocess.Popen] = []
    try:
        for label, app, port in SERVICES:
            print(f"Starting {label} on http://localhost:{port}")
            running.append(launch(app, port))
            if not wait_until_healthy(port):
                print(f"{label} did not become healthy; check the log above")
                return

        print("\nShop:        http://localhost:8000")
        print("Shop API:    http://localhost:8000/docs")
        print("Backend API: http://localhost:8001/docs")
        print("Verification codes appear in the backend log. Ctrl+C stops everything.\n")

        for process in running:
            process.wait()
    except KeyboardInterrupt:
        print("\nStopping...")
    finally:
        for process in running:
            process.terminate()
        for process in running:
            process.wait()


if __name__ == "__main__":
    main()
