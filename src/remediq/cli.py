import argparse
import logging
import sys

from remediq.config import EngineSettings
from remediq.core.errors import ConfigurationError, PersistenceError
from remediq.core.pipelines.trial.trial_log import TrialLogWriter
from remediq.core.q_table.q_table_manager import QTableManager
from remediq.core.reporting.analyzer import TrialAnalyzer
from remediq.logger import TrialTraceLogger, setup_logging
from remediq.orchestrations.trial_orchestrator import RemediqTrialOrchestrator


def handle_init_command(args):
    """Handles the 'init' command - writes a starter configuration file."""
    logging.info("Executing the 'init' command...")
    logging.info(f"Path: {args.path}")

    try:
        is_created, msg = EngineSettings().create_project_template(base_path=args.path)
        if is_created:
            logging.info(msg)
        else:
            logging.error(msg)
        return is_created

    except Exception as e:
        logging.error(f"Error initializing project: {str(e)}")
        return False


def handle_validate_command(args):
    """Handles the 'validate' command - checks every configuration section."""
    logging.info("Executing the 'validate' command...")
    logging.info(f"Configuration file: {args.config_path}")

    try:
        settings = EngineSettings(config_path=args.config_path, preload=True)
        is_valid, msg = settings.validate_config()

        if is_valid:
            logging.info(msg)
            return True

        logging.error(f"Validation failed: {msg}")
        return False

    except (FileNotFoundError, ValueError) as e:
        logging.error(f"Validation failed: {str(e)}")
        return False


def handle_run_command(args):
    """Handles the 'run' command - executes a bounded learning run."""
    logging.info("Executing the 'run' command...")

    trace_handler = TrialTraceLogger.setup(level=logging.WARNING)
    try:
        settings = EngineSettings(config_path=args.config_path, preload=bool(args.config_path))
        orchestrator = RemediqTrialOrchestrator(
            settings=settings,
            dry_run=args.dry_run,
            max_trials=args.max_trials,
            trace_handler=trace_handler,
        )
        summary = orchestrator.execute()

        logging.info(
            f"[SUCCESS] {summary.trials} trials, {summary.successes} successful, "
            f"final epsilon {summary.final_epsilon:.4f}"
        )
        return summary.q_table_saved

    except ConfigurationError as e:
        logging.error(f"Invalid configuration: {str(e)}")
        return False
    except (FileNotFoundError, ValueError) as e:
        logging.error(f"Could not load configuration: {str(e)}")
        return False
    finally:
        trace_handler.detach()


def handle_report_command(args):
    """Handles the 'report' command - rebuilds the analysis report from a trial log."""
    logging.info("Executing the 'report' command...")
    logging.info(f"Trial log: {args.trial_log}")

    try:
        records = TrialLogWriter(args.trial_log).load(strict=True)

        q_table = None
        if args.q_table:
            q_manager = QTableManager(file_path=args.q_table)
            if q_manager.load_q_table():
                q_table = q_manager.get_q_table()

        analyzer = TrialAnalyzer(records, window=args.window)
        report = analyzer.build_report(
            q_table=q_table,
            final_epsilon=records[-1].epsilon if records else None,
        )
        analyzer.log_summary(report)

        if args.output:
            analyzer.save_report(report, args.output)
            logging.info(f"Analysis report saved to {args.output}")
        else:
            print(report.model_dump_json(indent=2))
        return True

    except (PersistenceError, ConfigurationError) as e:
        logging.error(f"Report failed: {str(e)}")
        return False
    except OSError as e:
        logging.error(f"Could not write report: {str(e)}")
        return False


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="remediq",
        description="Remediq CLI: learn which remediation actions bring a project to readiness.",
    )
    parser.add_argument(
        "--log_level",
        type=str,
        metavar="LEVEL",
        default="INFO",
        help="Logging level (default: INFO).",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
        required=True,
    )

    # --- Define the 'init' command ---
    parser_init = subparsers.add_parser(
        "init", help="Write a starter remediq_config.yml."
    )
    parser_init.add_argument(
        "--path",
        type=str,
        metavar="PROJECT_PATH",
        default=".",
        help="Directory to write the configuration into (default: current directory).",
    )
    parser_init.set_defaults(func=handle_init_command)

    # --- Define the 'validate' command ---
    parser_validate = subparsers.add_parser(
        "validate", help="Validate a configuration file."
    )
    parser_validate.add_argument(
        "--config_path",
        type=str,
        metavar="CONFIG_PATH",
        required=True,
        help="Path to the configuration file to validate.",
    )
    parser_validate.set_defaults(func=handle_validate_command)

    # --- Define the 'run' command ---
    parser_run = subparsers.add_parser(
        "run", help="Run learning trials against the project."
    )
    parser_run.add_argument(
        "--config_path",
        type=str,
        metavar="CONFIG_PATH",
        default=None,
        help="Path to the configuration file (defaults apply when omitted).",
    )
    parser_run.add_argument(
        "--max_trials",
        type=int,
        metavar="N",
        default=None,
        help="Override the configured trial budget.",
    )
    parser_run.add_argument(
        "--dry-run",
        dest="dry_run",
        action="store_true",
        help="Use scripted handlers that fail as not configured instead of real services.",
    )
    parser_run.set_defaults(func=handle_run_command)

    # --- Define the 'report' command ---
    parser_report = subparsers.add_parser(
        "report", help="Rebuild the analysis report from a trial log."
    )
    parser_report.add_argument(
        "--trial_log",
        type=str,
        metavar="TRIAL_LOG",
        required=True,
        help="Path to the trial log JSON.",
    )
    parser_report.add_argument(
        "--q_table",
        type=str,
        metavar="Q_TABLE",
        default=None,
        help="Optional Q-table file for state coverage diagnostics.",
    )
    parser_report.add_argument(
        "--output",
        type=str,
        metavar="OUTPUT",
        default=None,
        help="Where to write the report (printed to stdout when omitted).",
    )
    parser_report.add_argument(
        "--window",
        type=int,
        metavar="N",
        default=5,
        help="Rolling success-rate window (default: 5).",
    )
    parser_report.set_defaults(func=handle_report_command)

    return parser


def main(argv=None) -> int:
    """Main entry point for the remediq CLI."""
    parser = build_parser()

    # No subcommand at all: show help instead of an argparse error
    if argv is None and len(sys.argv) == 1:
        parser.print_help(sys.stderr)
        return 1

    args = parser.parse_args(argv)

    try:
        setup_logging(args.log_level)
    except ValueError as e:
        parser.error(str(e))

    return 0 if args.func(args) else 1


if __name__ == "__main__":
    sys.exit(main())
