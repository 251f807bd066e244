"""
SQS UI - entry point
Loads configuration, binds the initial queue and serves the web UI/API
"""
import argparse
import logging
import sys

from sqs_ui import custom_logger, settings, version
from sqs_ui.api import create_app
from sqs_ui.clients import build_sqs_client
from sqs_ui.model import QueueIdentity
from sqs_ui.session import SessionFactory
from sqs_ui.switchboard import Switchboard

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="sqs-ui", description="Web UI and REST wrapper for one SQS queue")
    parser.add_argument("-v", "--version", action="store_true", help="print version information and exit")
    parser.add_argument("--host", help="listen address (default: $HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, help="listen port (default: $PORT or 8080)")
    return parser.parse_args(argv)


def build_switchboard(config: settings.AppConfig, client_builder=None) -> Switchboard:
    """Create the initial session (idle when no queue is configured)"""
    factory = SessionFactory(config, client_builder or build_sqs_client)
    identity = QueueIdentity(name=config.queue_name, url=config.queue_url)

    session = factory(identity, strict=False)
    if session.region:
        logger.info(f"AWS region: {session.region}")
    else:
        logger.info("AWS region not set")

    if identity.is_bound:
        if session.try_resolve():
            logger.info(f"Using queue {session.queue_name} -> {session.resolved_url}")
        else:
            logger.warning(f"Queue {session.queue_name} not resolved at startup, will retry on first use")
    else:
        logger.warning("No queue name or URL configured - running in idle mode")

    return Switchboard(session, factory)


def main(argv=None):
    args = parse_args(argv)
    if args.version:
        print(f"Version: {version.VERSION}\nCommit: {version.COMMIT}\nBuilt: {version.BUILD_TIME}")
        return 0

    config = settings.load()
    custom_logger.configure_logging(config.log_level, config.log_format)

    app = create_app(build_switchboard(config))

    host = args.host or config.host
    port = args.port or config.port
    logger.info(f"Starting server on {host}:{port} (version {version.VERSION})")
    app.run(host=host, port=port, debug=False, threaded=True)
    logger.info("Shutdown complete")
    return 0


if __name__ == "__main__":
    sys.exit(main())
