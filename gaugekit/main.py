"""Command line entry point: serve the gauges defined in a YAML file."""
import argparse
import logging
import sys

from gaugekit.config import load_config
from gaugekit.control_api import ControlAPI
from gaugekit.service import GaugeService

LOG_FORMATS = {
    "text": "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    "json": '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}',
}


def setup_logging(log_level: str, log_format: str):
    """Configure root logging for the service."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format=LOG_FORMATS.get(log_format, LOG_FORMATS["text"]),
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gaugekit",
        description="Serve labeled gauges over Prometheus, OpenTelemetry and a control API"
    )
    parser.add_argument("--config", "-c", required=True, help="Path to configuration YAML file")
    parser.add_argument("--port", type=int, help="Override the control API port")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config.global_.log_level, config.global_.log_format)
    logger = logging.getLogger(__name__)
    logger.info(f"Loaded {len(config.gauges)} gauges from {args.config}")

    service = GaugeService(config)
    port = args.port or config.global_.control_api_port
    try:
        ControlAPI(service).run(host=config.global_.control_api_host, port=port)
    finally:
        service.shutdown()


if __name__ == "__main__":
    main()
