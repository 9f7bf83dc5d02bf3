import argparse
import logging
from collections.abc import Callable
from pathlib import Path

import httpx

from marcfix.config import Settings, load_settings, require_catalog_api, require_credentials
from marcfix.constants import ORIGINAL_FILE_SUFFIX, VALIDATED_FILE_SUFFIX
from marcfix.context import RunContext, build_context, configure_logging
from marcfix.enums import FixAction
from marcfix.schemas import TimeWindow
from marcfix.services.backup import revert_single, revert_to_previous, save_batch, wipe_database
from marcfix.services.catalog import update_messages
from marcfix.services.local import file_fix, save_locally
from marcfix.services.orchestrator import FixOutcome, fix, show, validate_record
from marcfix.services.records import render_record
from marcfix.services.serializers import UnsupportedFormatError
from marcfix.services.utils import generate_batch_id, read_id_file
from marcfix.services.validation import ConfigError, MarcfixError, pad_record_id, validate_chunk_size, validate_record_id
from marcfix.services.validators import format_results
from marcfix.services.workflows.batch import BatchProcessor

logger = logging.getLogger("marcfix")

ContextFactory = Callable[[Settings], RunContext]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="marcfix", description="Validate and fix catalog records, with undo")
    actions = parser.add_mutually_exclusive_group(required=True)
    actions.add_argument("-s", "--show", metavar="ID", help="Show a single record")
    actions.add_argument("-v", "--validate", metavar="ID", help="Validate a single record")
    actions.add_argument("-f", "--fix", metavar="ID", help="Fix a single record")
    actions.add_argument("-l", "--localfix", metavar="ID", help="Fix a single record from the API, save the result locally")
    actions.add_argument(
        "-x", "--filefix", metavar="FILE", help="Validate and fix a set of records from local file, save results locally"
    )
    actions.add_argument("-m", "--fixmultiple", metavar="FILE", help="Read record ids from file, fix all")
    actions.add_argument("-u", "--undo", metavar="ID", help="Revert a single record to its previous version")
    actions.add_argument("-b", "--undobatch", metavar="BATCH_ID", help="Revert a batch of records into their previous state")
    actions.add_argument("-r", "--reset", action="store_true", help="Reset the local database, wipe all backup data")
    parser.add_argument("-c", "--chunksize", type=int, default=None, help="The size of the chunks to process with fixmultiple")
    parser.add_argument(
        "-t",
        "--timeinterval",
        default=None,
        help="The timeframe in a day in which long-running fixmultiple jobs are run (e.g. 17-06)",
    )
    return parser


def _print_fix(outcome: FixOutcome) -> None:
    print("\n".join(update_messages(outcome.update_response)))
    print("==============")
    print(f"Record {outcome.record_id} after validation:\n")
    print(render_record(outcome.validated_record))
    print()
    print(format_results(outcome.results))


def cmd_show(context: RunContext, record_id: str) -> int:
    print(show(context.catalog, pad_record_id(record_id)))
    return 0


def cmd_validate(context: RunContext, record_id: str, *, save: bool) -> int:
    record_id = pad_record_id(record_id)
    print(f"Validating record {record_id}")
    outcome = validate_record(context.catalog, context.validator, record_id)
    if outcome is None:
        logger.warning("Record %s was not found in the catalog.", record_id)
        return 1
    if outcome.revalidation_results is not None and outcome.revalidation_results.failing():
        print("The record was revalidated after changes, the validator output was:")
        print(format_results(outcome.revalidation_results))
    print("Validated record:")
    print(render_record(outcome.validated_record))
    print("\n" + format_results(outcome.results))
    if save:
        output_dir = context.settings.output_dir
        for record, suffix in ((outcome.validated_record, VALIDATED_FILE_SUFFIX), (outcome.original_record, ORIGINAL_FILE_SUFFIX)):
            path = save_locally(record, suffix, output_dir)
            logger.info("Saved record %s to %s", record_id, path)
    return 0


def cmd_fix(context: RunContext, record_id: str) -> int:
    record_id = pad_record_id(record_id)
    outcome = fix(context.catalog, context.validator, record_id)
    _print_fix(outcome)
    logger.info(
        "id: %s, action: %s, active validators: %s",
        record_id,
        FixAction.fix.value,
        ", ".join(outcome.results.active_validators()) or "none",
    )
    batch_id = generate_batch_id()
    outcome.batch_id = batch_id
    logger.info("Saving update results of record %s to db with batchId '%s'...", record_id, batch_id)
    with context.session_factory() as db:
        save_batch(db, [outcome], batch_id, actor=context.settings.operator_id)
        db.commit()
    logger.info("Success.")
    return 0


def cmd_filefix(context: RunContext, path: Path) -> int:
    print(f"Validating records from file {path}.")
    result = file_fix(path, context.validator, context.settings.output_dir)
    logger.info(
        "action: fileFix, inputfile: %s, outputfile: %s, processed recs: %s",
        path,
        result["output_file"],
        result["processed"],
    )
    return 0


def cmd_fixmultiple(context: RunContext, path: Path, *, chunk_size: int, time_window: TimeWindow | None) -> int:
    validate_chunk_size(chunk_size)
    if not path.exists():
        raise MarcfixError(f"File {path} does not exist.")
    ids = read_id_file(path)
    if not ids:
        raise MarcfixError("File does not contain valid record ids.")

    logger.info("Read %s record ids from file %s, fixing them in chunks of %s.", len(ids), path, chunk_size)
    processor = BatchProcessor(
        context,
        batch_id=generate_batch_id(),
        chunk_size=chunk_size,
        time_window=time_window,
        on_success=_print_fix,
    )
    summary = processor.run(ids)
    if summary.failed_ids:
        logger.warning("Failed record ids: %s", ", ".join(summary.failed_ids))
    return 0 if not summary.unbacked_ids else 1


def cmd_undo(context: RunContext, record_id: str) -> int:
    record_id = validate_record_id(pad_record_id(record_id))
    with context.session_factory() as db:
        reverted = revert_single(db, context.catalog, record_id, actor=context.settings.operator_id)
        db.commit()
    if not reverted:
        logger.warning("Record %s was not found in the backup database.", record_id)
        return 0
    logger.info("Success.")
    return 0


def cmd_undobatch(context: RunContext, batch_id: str) -> int:
    logger.info("Performing a rollback from batch with id '%s'...", batch_id)
    with context.session_factory() as db:
        results = revert_to_previous(db, context.catalog, batch_id, actor=context.settings.operator_id)
        db.commit()
    if not results:
        logger.warning("Batch '%s' was not found in the backup database.", batch_id)
        return 0
    failed = [result.record_id for result in results if not result.reverted]
    if failed:
        logger.error("Reverting %s record(s) failed: %s", len(failed), ", ".join(failed))
        return 1
    logger.info("Success. Reverted %s record(s).", len(results))
    return 0


def cmd_reset(context: RunContext) -> int:
    with context.session_factory() as db:
        wiped = wipe_database(db, actor=context.settings.operator_id)
        db.commit()
    if wiped:
        logger.info("Success.")
    return 0


def dispatch(args: argparse.Namespace, settings: Settings, context_factory: ContextFactory) -> int:
    time_window = TimeWindow.from_string(args.timeinterval) if args.timeinterval else None
    chunk_size = args.chunksize if args.chunksize is not None else settings.default_chunk_size

    if args.show:
        require_catalog_api(settings)
    elif args.validate or args.localfix or args.fix or args.fixmultiple or args.undo or args.undobatch:
        require_credentials(settings)

    context = context_factory(settings)
    try:
        if args.show:
            return cmd_show(context, args.show)
        if args.validate or args.localfix:
            return cmd_validate(context, args.validate or args.localfix, save=bool(args.localfix))
        if args.fix:
            return cmd_fix(context, args.fix)
        if args.filefix:
            return cmd_filefix(context, Path(args.filefix))
        if args.fixmultiple:
            return cmd_fixmultiple(context, Path(args.fixmultiple), chunk_size=chunk_size, time_window=time_window)
        if args.undo:
            return cmd_undo(context, args.undo)
        if args.undobatch:
            return cmd_undobatch(context, args.undobatch)
        return cmd_reset(context)
    finally:
        context.close()


def main(argv: list[str] | None = None, *, context_factory: ContextFactory = build_context) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = load_settings()
        configure_logging(settings)
        return dispatch(args, settings, context_factory)
    except ConfigError as exc:
        logger.error("%s", exc)
        return 2
    except (MarcfixError, UnsupportedFormatError, FileNotFoundError, httpx.HTTPError) as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
