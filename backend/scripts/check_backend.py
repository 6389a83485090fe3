#!/usr/bin/env python3
"""
Quick checks so the backend can start. Run from repo root or backend/:
  poetry run python scripts/check_backend.py
  # or from repo root:
  cd backend && poetry run python scripts/check_backend.py
"""
import os
import sys
from pathlib import Path

# Run from backend/
backend_dir = Path(__file__).resolve().parent.parent
os.chdir(backend_dir)
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

def main():
    errors = []

    # 1) .env
    env_file = backend_dir / ".env"
    if not env_file.exists():
        errors.append("backend/.env missing. Copy from backend/.env.example and set BACKEND_URL, keys, etc.")
    else:
        print("OK  .env exists")

    # 2) Settings for the selected mode
    try:
        from parkaccess.config import settings
        from parkaccess.services.backend import BackendConfig
        print(f"OK  Settings load (BACKEND_MODE={settings.backend_mode})")
        if not BackendConfig.for_direct(settings).is_configured() and settings.backend_mode == "direct":
            errors.append("Direct mode needs BACKEND_URL and BACKEND_ANON_KEY.")
            print("FAIL Direct mode credentials")
        if not BackendConfig.for_relay(settings).is_configured():
            print("WARN Relay endpoint disabled: BACKEND_URL or BACKEND_SERVICE_KEY not set")
    except Exception as e:
        errors.append(f"Settings: {e}")
        print("FAIL Settings:", e)
        return 1

    # 3) Remote data service reachable (anonymous read of approved spots)
    try:
        from parkaccess.services.backend import create_backend_client
        from parkaccess.core.constants import SPOTS_TABLE
        client = create_backend_client(settings)
        rows = client.select(SPOTS_TABLE, {"status": "approved"}, columns="id")
        print(f"OK  Backend reachable ({len(rows)} approved spots)")
    except Exception as e:
        errors.append(f"Backend: {e}")
        print("FAIL Backend:", e)

    # 4) App import (catches missing deps, bad imports)
    try:
        from parkaccess.main import app
        print("OK  App import (parkaccess.main)")
    except Exception as e:
        errors.append(f"App import: {e}")
        print("FAIL App import:", e)
        if errors:
            print("\nFix the above, then run:")
            print("  cd backend && poetry run uvicorn parkaccess.main:app --reload --host 0.0.0.0 --port 8000")
        return 1

    # 5) Port 8000
    try:
        import socket
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind(("127.0.0.1", 8000))
        print("OK  Port 8000 is free")
    except OSError:
        errors.append("Port 8000 is in use. Stop the other process or use another port (e.g. --port 8001).")
        print("FAIL Port 8000 is in use")

    if errors:
        print("\n---")
        for e in errors:
            print("•", e)
        print("\nThen start backend: cd backend && poetry run uvicorn parkaccess.main:app --reload")
        return 1

    print("\nAll checks passed. Start with: cd backend && poetry run uvicorn parkaccess.main:app --reload")
    return 0

if __name__ == "__main__":
    sys.exit(main())
