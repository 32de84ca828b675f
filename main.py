#!/usr/bin/env python
"""
Noblinks Backend - Application Entry Point

Usage:
    # Development mode (with hot reload):
    python main.py

    # Or use uvicorn directly:
    uvicorn noblinks.main:app --host 0.0.0.0 --port 8000 --reload

Environment Variables:
    - APP_DEBUG=true: Enable debug mode
    - DEV_AUTO_RELOAD=true: Enable hot reload
    - APP_ENV=development: Development environment
"""

from pathlib import Path

import uvicorn

from noblinks.core.config import settings

root_dir = Path(__file__).parent.resolve()


def main() -> None:
    """Run the FastAPI application with hot reload in development mode."""

    print("=" * 60)
    print("Starting Noblinks Backend")
    print("=" * 60)
    print(f"   Environment: {settings.app.app_env}")
    print(f"   Debug Mode: {settings.app.app_debug}")
    print(f"   Hot Reload: {settings.app.app_debug and settings.dev_auto_reload}")
    print(f"   Host: {settings.app.api_host}:{settings.app.api_port}")
    print(f"   AI Provider: {settings.ai.provider or 'not configured'}")
    print("=" * 60)
    print()

    uvicorn.run(
        "noblinks.main:app",
        host=settings.app.api_host,
        port=settings.app.api_port,
        reload=settings.app.app_debug and settings.dev_auto_reload,
        workers=1 if settings.app.app_debug else settings.app.api_workers,
        log_level=settings.log.level.lower(),
        access_log=settings.log.requests,
        reload_dirs=[str(root_dir / "noblinks")] if settings.app.app_debug else None,
        reload_delay=0.5,  # Debounce time for file changes
    )


if __name__ == "__main__":
    main()
