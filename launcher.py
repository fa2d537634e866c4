#!/usr/bin/env python3
"""
TimeTracker Application Launcher
Provides simple entry points for client and server applications.
"""

import sys
from pathlib import Path

# Add the project root to Python path for clean imports
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))


def main():
    """Main launcher with command-line arguments"""

    if len(sys.argv) < 2:
        print("TimeTracker Application Launcher")
        print()
        print("Usage:")
        print("  python launcher.py client [WORK_LOG_ID]   # Run client GUI application")
        print("  python launcher.py server [PORT]          # Run reference server (Waitress)")
        sys.exit(1)

    command = sys.argv.pop(1).lower()

    if command == 'client':
        from client.gui_app import main as run_client
        run_client()

    elif command == 'server':
        from server import DEFAULT_SERVER_PORT, run_server
        port = int(sys.argv[1]) if len(sys.argv) > 1 else DEFAULT_SERVER_PORT
        run_server(port=port)

    else:
        print(f"Unknown command: {command}")
        print("Use 'client' or 'server'")
        sys.exit(1)


if __name__ == '__main__':
    main()
