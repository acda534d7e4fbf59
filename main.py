#!/usr/bin/env python3
"""Entry point for the block time resolver HTTP service.

This module loads configuration from the environment (and an optional
``.env`` file) and serves the resolver API with uvicorn.
"""

import argparse
import logging
import os
import sys

import uvicorn
from dotenv import load_dotenv


# Configure logging before any other imports create loggers
def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the application.

    Args:
        level: Logging level as string (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    log_level: int = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

# Get logger for this module
logger = logging.getLogger(__name__)

from block_time_resolver.api import create_app
from block_time_resolver.config import ResolverConfig


def main() -> None:
    """Main entry point for the block time resolver service.

    Parses startup arguments, loads configuration from environment,
    and serves the HTTP API until interrupted.

    Raises:
        SystemExit: On configuration or runtime errors
    """
    load_dotenv()

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        description="Block Time Resolver - map timestamps to EVM blocks and Solana slots",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Environment Variables:
  EVM_RPC_URL               - JSON-RPC endpoint for the EVM chain
  SOLANA_RPC_URL            - JSON-RPC endpoint for Solana
  RETRY_ATTEMPTS            - Attempts per remote lookup (default: 3)
  RETRY_DELAY_MS            - Delay between attempts (default: 1000)
  MAX_SEARCH_OFFSET         - Solana refinement offset (default: 100)
  TIME_DIFFERENCE_THRESHOLD - Solana refinement threshold (default: 60)
  HOST / PORT               - Listen address (default: 0.0.0.0:8080)
  REQUEST_TIMEOUT           - RPC request timeout in seconds (default: 30)
  LOG_LEVEL                 - Logging level (can be overridden with --log-level)
        """
    )
    parser.add_argument("--host", default=None, help="Override HOST")
    parser.add_argument("--port", type=int, default=None, help="Override PORT")
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging level (default: INFO)"
    )
    args: argparse.Namespace = parser.parse_args()

    setup_logging(args.log_level)
    logger.info("=== Block Time Resolver Starting ===")
    logger.info("Loading configuration from environment...")

    try:
        config: ResolverConfig = ResolverConfig.from_env()
        config.log_config()

        host: str = args.host or config.server.host
        port: int = args.port or config.server.port
        logger.info(f"Serving on {host}:{port}")

        uvicorn.run(
            create_app(config),
            host=host,
            port=port,
            log_level=args.log_level.lower(),
            access_log=True
        )

    except ValueError as e:
        logger.error(f"Configuration Error: {e}")
        logger.error("Please check your environment variables:")
        logger.error("  - EVM_RPC_URL / SOLANA_RPC_URL: http(s) JSON-RPC endpoints")
        logger.error("  - RETRY_ATTEMPTS: 1-10, RETRY_DELAY_MS: 0-60000")
        logger.error("  - PORT: 1-65535, REQUEST_TIMEOUT: 1-120")
        sys.exit(1)

    except KeyboardInterrupt:
        logger.info("\nReceived interrupt signal, shutting down gracefully...")
        sys.exit(0)

    except Exception as e:
        logger.error(f"Fatal Error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
