"""Command line interface for the table-to-collection migration tool."""

import argparse
import json
import logging
import sys
import threading
from typing import List, Optional

from .exceptions import MigrationError
from .models.events import LogEntry, LogType
from .models.migration import MigrationConfig, MigrationRun, MigrationStatus
from .orchestrator import MigrationOrchestrator
from .services.schema_analyzer import describe_field

logger = logging.getLogger(__name__)

LOG_PREFIXES = {
    LogType.INFO: " ",
    LogType.SUCCESS: "+",
    LogType.ERROR: "!",
}


def print_log_entry(entry: LogEntry) -> None:
    """Render one event log entry on stdout."""
    timestamp = entry.timestamp.strftime("%H:%M:%S")
    print(f"[{timestamp}] {LOG_PREFIXES[entry.type]} {entry.message}", flush=True)


def print_summary(run: MigrationRun) -> None:
    """Print the end-of-run summary."""
    print("\n" + "=" * 60)
    print("MIGRATION FINISHED")
    print("=" * 60)
    print(f"Status: {run.status.value}")
    for table, stats in run.stats.progress.items():
        print(
            f"  {table}: {stats.migrated_records}/{stats.total_records} migrated, "
            f"{stats.failed_records} failed"
        )
    print(f"Migrated: {run.stats.total_migrated}")
    print(f"Failed: {run.stats.total_failed}")
    if run.stats.duration_seconds is not None:
        print(f"Duration: {run.stats.duration_seconds:.2f} seconds")
    if run.error:
        print(f"Error: {run.error}")


def create_orchestrator(config: MigrationConfig) -> MigrationOrchestrator:
    return MigrationOrchestrator(
        request_timeout=config.request_timeout,
        cache_schema=config.cache_schema,
    )


def run_migration(args) -> int:
    """Run a migration from config file, printing events as they happen."""
    config = MigrationConfig.from_json_file(args.config)
    orchestrator = create_orchestrator(config)
    run = config.create_run()
    run.logs.subscribe(print_log_entry)

    failure: List[BaseException] = []

    def worker():
        try:
            orchestrator.run_migration(run)
        except MigrationError as e:
            failure.append(e)

    thread = threading.Thread(target=worker, name="docmigrate-run", daemon=True)
    thread.start()

    # Ctrl-C only flags the run; the record in flight is allowed to finish
    while thread.is_alive():
        try:
            thread.join(timeout=0.5)
        except KeyboardInterrupt:
            if not run.cancel_token.cancelled:
                run.request_cancel()

    print_summary(run)

    if failure or run.status == MigrationStatus.ERROR:
        return 1
    return 0


def run_analysis(args) -> int:
    """Analyze source tables and create the matching destination attributes."""
    config = MigrationConfig.from_json_file(args.config)
    orchestrator = create_orchestrator(config)

    mappings = config.mappings
    if args.table:
        mapping = config.get_mapping(args.table)
        if not mapping:
            print(f"No mapping configured for table: {args.table}")
            return 1
        mappings = [mapping]

    exit_code = 0
    for mapping in mappings:
        print(f"\n=== {mapping.source_table} -> {mapping.dest_collection_id} ===")
        try:
            if args.dry_run:
                fields = orchestrator.infer_schema(config.credentials, mapping)
                created, failed = [], {}
            else:
                result = orchestrator.analyze_schema(config.credentials, mapping)
                fields, created, failed = result.fields, result.created, result.failed
        except MigrationError as e:
            print(f"Failed to analyze {mapping.source_table}: {e}")
            exit_code = 1
            continue

        if not fields:
            print("No fields detected (empty table)")
            continue

        print(f"Detected Fields ({len(fields)}):")
        for field in fields:
            print(f"  {describe_field(field)}")

        if not args.dry_run:
            print(f"Created: {', '.join(created) or '-'}")
            for key, message in failed.items():
                print(f"  ! {key}: {message}")

    return exit_code


def run_preview(args) -> int:
    """Preview how the first record of a table would be written."""
    config = MigrationConfig.from_json_file(args.config)
    mapping = config.get_mapping(args.table)
    if not mapping:
        print(f"No mapping configured for table: {args.table}")
        return 1

    orchestrator = create_orchestrator(config)
    try:
        sample, document = orchestrator.preview_record(config.credentials, mapping)
    except MigrationError as e:
        print(f"Preview failed: {e}")
        return 1

    if sample is None:
        print(f"Table {mapping.source_table} is empty")
        return 0

    print("\n=== Source Record ===")
    print(json.dumps(sample, indent=2, default=str))
    print("\n=== Transformed Document ===")
    print(json.dumps(document.to_payload(), indent=2, default=str))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Migrate table records into document collections"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Run migration
    run_parser = subparsers.add_parser("run", help="Run a migration")
    run_parser.add_argument("--config", required=True, help="Path to migration config file")

    # Schema analysis
    analyze_parser = subparsers.add_parser("analyze", help="Analyze tables and create destination attributes")
    analyze_parser.add_argument("--config", required=True, help="Path to migration config file")
    analyze_parser.add_argument("--table", help="Only analyze this source table")
    analyze_parser.add_argument("--dry-run", action="store_true", help="Show detected fields without creating attributes")

    # Preview transformation
    preview_parser = subparsers.add_parser("preview", help="Preview the transformed first record of a table")
    preview_parser.add_argument("--config", required=True, help="Path to migration config file")
    preview_parser.add_argument("--table", required=True, help="Source table to preview")

    args = parser.parse_args(argv)

    # Set up logging
    log_level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    if args.command == "run":
        return run_migration(args)
    elif args.command == "analyze":
        return run_analysis(args)
    elif args.command == "preview":
        return run_preview(args)
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
