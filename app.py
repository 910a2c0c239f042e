#!/usr/bin/env python3
"""
Home Dashboard - Entry Point
==============================
One-command startup for the home-automation dashboard.

Usage:
    python app.py              # Start with default settings
    python app.py --port 9000  # Start on custom port

This script:
    1. Loads environment variables from .env (SESSION_SECRET)
    2. Loads configuration from config.yaml
    3. Starts the uvicorn server with the FastAPI app factory

The server binds to all interfaces by default so other devices on the
LAN (phones, wall tablets) can reach it.
"""

import os
import shutil
import argparse
import uvicorn
from dotenv import load_dotenv


def main():
    """Parse arguments, load config, and start the web server."""

    # -- Parse command-line arguments ------------------------------------------
    parser = argparse.ArgumentParser(
        description="Home Dashboard - home automation web console",
    )
    parser.add_argument(
        "--port", type=int, default=None,
        help="Port number for the web server (overrides config.yaml)",
    )
    parser.add_argument(
        "--host", type=str, default=None,
        help="Host binding address (overrides config.yaml)",
    )
    args = parser.parse_args()

    # -- Resolve project directory ---------------------------------------------
    project_dir = os.path.dirname(os.path.abspath(__file__))

    # -- Ensure configuration file exists --------------------------------------
    config_path = os.path.join(project_dir, "config.yaml")
    config_example = os.path.join(project_dir, "config.yaml.example")
    if not os.path.exists(config_path) and os.path.exists(config_example):
        shutil.copy2(config_example, config_path)
        print("[INIT] Created config.yaml from template")

    # -- Load environment variables from .env ----------------------------------
    env_path = os.path.join(project_dir, ".env")
    if os.path.exists(env_path):
        load_dotenv(env_path)

    # -- Load configuration to get web server settings -------------------------
    from dashboard.config import ConfigManager, DEFAULTS
    config = ConfigManager(project_dir).load()

    # Command-line args override config file
    host = args.host or config["web"].get("host", DEFAULTS["web"]["host"])
    port = args.port or config["web"].get("port", DEFAULTS["web"]["port"])

    print()
    print(f"  Home Dashboard running at http://{host}:{port}")
    print(f"  Access from the LAN via http://<machine-ip>:{port}")
    print()

    # -- Start the web server --------------------------------------------------
    uvicorn.run(
        "dashboard.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )


if __name__ == "__main__":
    main()
