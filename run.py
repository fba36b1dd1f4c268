#!/usr/bin/env python3
"""
Koperasi Governance Entry Point

Starts the FastAPI server with the meeting, attendance and voting core.
"""

import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from koperasi.config import get_config
from koperasi.api import run_server


if __name__ == "__main__":
    config = get_config()
    print("🏛️  Starting Koperasi Governance API...")
    print("🗳️  One vote per member per agenda item")
    print("🔒 Audit trail " + ("active" if config.enable_audit_logging else "disabled"))
    print(f"🌐 API available at: http://localhost:{config.api_port}")
    print(f"📚 Documentation at: http://localhost:{config.api_port}/docs")
    print()

    try:
        run_server(
            host=config.api_host,
            port=config.api_port,
            debug=False,  # Set to True for development
            workers=config.api_workers
        )
    except KeyboardInterrupt:
        print("\n👋 Shutting down Koperasi Governance API...")
    except Exception as e:
        print(f"❌ Error starting server: {e}")
        sys.exit(1)
