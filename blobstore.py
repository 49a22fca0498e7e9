# Production runner for the blob store server using the configured storages
import argparse
import sys

from blobstore_lib.main import create_app, Config


def get_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Blob store server")
    p.add_argument("--config", default="data/config/server_config.yml", help="Path to the YAML server config")
    p.add_argument("--data-dir", default="data", help="Base directory for the default file storage")
    p.add_argument("--host", default="0.0.0.0")
    p.add_argument("--port", type=int, default=8000)
    return p


if __name__ == "__main__":
    args = get_parser().parse_args(sys.argv[1:])
    app = create_app(Config(config_path=args.config, data_dir=args.data_dir))
    import uvicorn
    uvicorn.run(app, host=args.host, port=args.port)
