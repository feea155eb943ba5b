#!/usr/bin/env python3
"""
Script to run the History Books Catalog API server.
"""

import sys
from pathlib import Path

import uvicorn

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from api.config import config as api_config
from utilities.config import config


def main():
    """Run the API server."""
    print("🚀 Starting History Books Catalog API Server")
    print(f"📡 Host: {api_config.host}")
    print(f"🔌 Port: {api_config.port}")
    print(f"🌐 Debug: {api_config.debug}")
    print(f"📚 Database: {config.mongodb_database}")
    print(f"🖼️  Uploads: {config.uploads_dir}")
    print(f"🔗 API URL: http://localhost:{api_config.port}{api_config.api_prefix}")
    print("=" * 50)

    uvicorn.run(
        "api.main:app",
        host=api_config.host,
        port=api_config.port,
        reload=api_config.debug,
        log_level=api_config.log_level.lower(),
        access_log=True
    )


if __name__ == "__main__":
    main()
