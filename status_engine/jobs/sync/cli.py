"""CLI entry point for the sync job."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from ...core.domain.errors import ConfigurationError
from .config import SyncConfig
from .runner import run_sync

logger = logging.getLogger(__name__)


def main(argv: Optional[Sequence[str]] = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    env = SyncConfig.from_env()
    p = argparse.ArgumentParser(description="Pull sync messages and store them for the status batch job")
    p.add_argument("--ams-endpoint", dest="endpoint", default=env.endpoint)
    p.add_argument("--ams-port", dest="port", type=int, default=env.port)
    p.add_argument("--ams-token", dest="token", default=env.token)
    p.add_argument("--ams-project", dest="project", default=env.project)
    p.add_argument("--ams-sub", dest="subscription", default=env.subscription)
    p.add_argument("--base-path", dest="base_path", default=env.base_path,
                   help="destination directory for sync files")
    p.add_argument("--ams-batch", dest="batch", type=int, default=env.batch,
                   help="messages per pull request")
    p.add_argument("--ams-interval", dest="interval_ms", type=int, default=env.interval_ms,
                   help="interval (ms) between pull requests")
    p.add_argument("--max-polls", type=int, default=None, help="stop after N pull requests")
    p.add_argument("--insecure", action="store_true", help="skip TLS verification")
    args = p.parse_args(argv)

    cfg = SyncConfig(
        endpoint=args.endpoint,
        port=args.port,
        token=args.token,
        project=args.project,
        subscription=args.subscription,
        base_path=args.base_path,
        batch=args.batch,
        interval_ms=args.interval_ms,
        verify_tls=not args.insecure,
    )
    try:
        run_sync(cfg, max_polls=args.max_polls)
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        return 2
    except KeyboardInterrupt:
        logger.info("[SYNC] interrupted")
    return 0


if __name__ == "__main__":
    sys.exit(main())
