"""CLI entry point for the status batch job."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from ...common.config import get_settings
from ...core.domain.errors import ConfigurationError
from .config import RunnerConfig
from .runner import run_once

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    p = argparse.ArgumentParser(description="Status batch job (status_metrics + status_endpoints)")
    p.add_argument("--report", default=settings.report, help="report name attached to every output record")
    p.add_argument("--egroup-type", dest="egroup_type", default="", help="membership type that defines a group")
    p.add_argument("--mps", default="", help="metric profile sync file")
    p.add_argument("--egp", default="", help="endpoint group topology file")
    p.add_argument("--ggp", default="", help="group of groups topology file")
    p.add_argument("--mdata", default="", help="metric data of the current period")
    p.add_argument("--pdata", default="", help="metric data of the previous period")
    p.add_argument("--ops", default="", help="operations profile (JSON)")
    p.add_argument("--aps", default="", help="availability profile (JSON)")
    p.add_argument(
        "--destination", default=settings.db_url,
        help="SQLAlchemy URL, or jsonl://<dir> for JSON lines files",
    )
    p.add_argument("--metric-profile", dest="metric_profile", default=None,
                   help="active metric profile (default: the availability profile's)")
    p.add_argument("--workers", type=int, default=settings.workers)
    p.add_argument("--metrics-textfile", dest="metrics_textfile",
                   default=settings.metrics_textfile or None,
                   help="write Prometheus textfile metrics to this path")
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    args = build_parser().parse_args(argv)
    cfg = RunnerConfig(
        report=args.report,
        egroup_type=args.egroup_type,
        metric_profiles_path=args.mps,
        endpoint_groups_path=args.egp,
        group_groups_path=args.ggp,
        metric_data_path=args.mdata,
        prev_metric_data_path=args.pdata,
        ops_profile_path=args.ops,
        availability_profile_path=args.aps,
        destination=args.destination,
        metric_profile=args.metric_profile,
        workers=args.workers,
        metrics_textfile=args.metrics_textfile,
    )

    logger.info("Status batch started")
    logger.info("Config: report=%s egroup_type=%s workers=%d", cfg.report, cfg.egroup_type, cfg.workers)

    try:
        summary = run_once(cfg)
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        return 2
    except Exception:
        logger.exception("Status batch failed, nothing was committed")
        return 1

    logger.info("%s", summary)
    return 0


if __name__ == "__main__":
    sys.exit(main())
