#!/usr/bin/env python3
"""
Development server runner with automatic reload and environment setup.
"""

import os
import sys
import subprocess
from pathlib import Path

REQUIRED_KEYS = ("SUPABASE_URL", "SUPABASE_SERVICE_KEY")


def check_env_file():
    """Make sure .env exists and names the storage settings uploads need."""
    env_file = Path(".env")
    env_example = Path("env.example")

    if not env_file.exists() and env_example.exists():
        print("Creating .env file from template...")
        env_file.write_text(env_example.read_text())
        print("Please fill in your Supabase URL and service key in .env.")
        return False
    elif not env_file.exists():
        print("No .env file found. Please create one with your configuration.")
        return False

    configured = {
        line.split("=", 1)[0].strip()
        for line in env_file.read_text().splitlines()
        if "=" in line and line.split("=", 1)[1].strip() and not line.startswith("#")
    }
    missing = [key for key in REQUIRED_KEYS if key not in configured and not os.environ.get(key)]
    if missing:
        print(f"Warning: {', '.join(missing)} not set; uploads will fail.")

    return True


def main():
    """Run the development server."""
    if not check_env_file():
        sys.exit(1)

    os.environ.setdefault("ENVIRONMENT", "development")

    try:
        subprocess.run([
            sys.executable, "-m", "uvicorn",
            "app.main:app",
            "--host", "0.0.0.0",
            "--port", "8000",
            "--reload"
        ])
    except KeyboardInterrupt:
        print("\nShutting down development server...")


if __name__ == "__main__":
    main()
