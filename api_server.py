"""
Traffic Console - REST API Server
Run with: python api_server.py
"""

from traffic_console.api.app import main

if __name__ == "__main__":
    main()
