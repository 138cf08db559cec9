import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent / "src"))

import uvicorn

from api import create_app
from config import find_config_path, get_config_value, get_log_level, load_config


def main():
    parser = argparse.ArgumentParser(description="Serve the ingest and query API")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.toml in project root)",
    )
    parser.add_argument("--host", default=None, help="Bind address")
    parser.add_argument("--port", type=int, default=None, help="Bind port")

    args = parser.parse_args()

    config_path = find_config_path(args.config)
    config = load_config(config_path)

    logging.basicConfig(
        level=get_log_level(config),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = create_app(config_path=config_path, config=config)
    uvicorn.run(
        app,
        host=args.host or get_config_value(config, "server.host") or "0.0.0.0",
        port=args.port or int(get_config_value(config, "server.port", 8000)),
        log_config=None,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
