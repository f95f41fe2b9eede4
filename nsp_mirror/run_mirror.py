#!/usr/bin/env python3
"""
Command line entry point for the NSP advisory mirror.

Loads the YAML configuration, wires the store, event bus and mirror task,
publishes a single mirror request and reports on the outcome:
1. Initialize database schema
2. Trigger the mirror run (fetch -> normalize -> synchronize -> reindex)
3. Run data quality checks over the mirrored vulnerabilities
4. Write a Markdown run report

Usage:
    python run_mirror.py [--config path/to/config.yaml] [--no-report]
"""
import sys
import yaml
import logging
import argparse
from pathlib import Path
from typing import Any, Dict

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent))

from events.bus import Event, EventBus, EventKind
from observability.quality_checks import QualityChecker
from observability.reporter import RunReporter
from storage.database import Database
from tasks.mirror_task import MirrorTask, TaskState

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

REQUIRED_SECTIONS = ["database", "mirror"]


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load and validate the YAML configuration.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If a required section is missing
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path) as f:
        config = yaml.safe_load(f) or {}

    for key in REQUIRED_SECTIONS:
        if key not in config:
            raise ValueError(f"Missing required config key: {key}")
    return config


def main(argv=None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Mirror the Node Security Platform advisory feed"
    )
    parser.add_argument(
        "--config",
        default="config.yaml",
        help="Path to configuration file (default: config.yaml)"
    )
    parser.add_argument(
        "--no-report",
        action="store_true",
        help="Skip quality checks and the Markdown run report"
    )
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    db = Database(config["database"]["path"])
    try:
        db.initialize_schema()
        bus = EventBus()
        bus.subscribe(
            EventKind.INDEX_COMMIT,
            lambda event: logger.info(f"Reindex requested for {event.subject}")
        )
        task = MirrorTask(db, bus, config)

        bus.publish(Event(kind=EventKind.MIRROR_REQUESTED))
        metrics = task.last_metrics

        if not args.no_report and metrics is not None:
            quality_results = QualityChecker(db).run_all_checks()
            reporter = RunReporter()
            report = reporter.generate_report(metrics, quality_results)
            output_dir = Path((config.get("output") or {}).get("report_dir", "output"))
            report_path = reporter.save_report(report, output_dir)
            logger.info(f"Report: {report_path}")

        print("\n" + "=" * 60)
        print("NSP Mirror Summary")
        print("=" * 60)
        if metrics is not None:
            print(f"Run ID: {metrics.run_id}")
            print(f"Status: {metrics.status}")
            print(f"Pages: {metrics.pages_fetched}")
            print(f"Advisories: {metrics.advisories_processed}")
            print(f"Mapping Warnings: {metrics.mapping_warning_total}")
            print(f"Errors: {metrics.errors}")
        print("=" * 60)

        return 0 if task.state is TaskState.COMPLETED else 1

    except Exception as e:
        logger.error(f"Mirror failed: {e}", exc_info=True)
        return 1

    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
