"""
Corridor Priority Engine entry point
Run: python run.py
Open: http://localhost:8000/docs
"""
import logging
import os
import sys
from pathlib import Path

import uvicorn
from dotenv import load_dotenv


def check_data():
    """Warn about missing corridor data files."""
    data_dir = Path(os.getenv("CORRIDOR_DATA_DIR", "data"))
    required_files = ["stations.csv", "connections.csv", "zones.json"]

    missing = [name for name in required_files if not (data_dir / name).exists()]
    if missing:
        print(f"[WARN]  Missing data files in {data_dir}: {', '.join(missing)}")
        print()


def main():
    load_dotenv()

    log_level = os.getenv("LOG_LEVEL", "info").lower()
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print("=" * 60)
    print("Corridor Priority Engine - Berlin-Hamburg")
    print("=" * 60)
    print()

    check_data()

    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "8000"))
    reload = os.getenv("RELOAD", "True").lower() == "true"

    print(f"[*] Server: http://{host}:{port}")
    print(f"[*] Project directory: {Path.cwd()}")
    print(f"[*] Auto reload: {'on' if reload else 'off'}")
    print()
    print("Press Ctrl+C to stop.")
    print("=" * 60)
    print()

    try:
        uvicorn.run(
            "api.app:app",
            host=host,
            port=port,
            reload=reload,
            reload_dirs=["api", "corridor"],
            log_level=log_level,
        )
    except KeyboardInterrupt:
        print("\n\n[*] Shutting down.")
    except Exception as e:
        print(f"\n[ERROR] Server failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
