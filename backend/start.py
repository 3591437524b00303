#!/usr/bin/env python3
"""
Startup script for the MentorHub backend
- API server (default): python start.py api
- Migrations only:      python start.py migrate
"""
import os
import subprocess
import sys


def run_migrations() -> bool:
    print("Running database migrations...")
    try:
        subprocess.run(["alembic", "upgrade", "head"], check=True)
        print("Database migrations completed successfully")
        return True
    except subprocess.CalledProcessError as e:
        print(f"Migration failed: {e}")
        return False


def run_api() -> None:
    port = os.environ.get("PORT", "8000")
    print(f"Starting MentorHub backend (API) on port {port}")

    if not run_migrations():
        print("Continuing startup without migrations")

    cmd = [
        "uvicorn",
        "mentorhub.main:app",
        "--host", "0.0.0.0",
        "--port", str(port),
    ]
    print(f"Running command: {' '.join(cmd)}")
    os.execvp("uvicorn", cmd)


def main() -> None:
    mode = sys.argv[1] if len(sys.argv) > 1 else "api"
    if mode == "api":
        run_api()
    elif mode == "migrate":
        sys.exit(0 if run_migrations() else 1)
    else:
        print(f"Unknown mode: {mode}. Use 'api' or 'migrate'.")
        sys.exit(2)


if __name__ == "__main__":
    main()
