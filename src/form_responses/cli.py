from __future__ import annotations

import argparse
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from .backup import backup_to_csv
from .errors import PortalError, ValidationError
from .export import DOCUMENTS, RESPONSES, export_store
from .dispatch_payload import parse_items, parse_timestamp
from .drive import DriveResolver
from .ingest import ingest_form_response, ingest_payload
from .schema import DEFAULT_PAGE_LIMIT, SECTOR_FIELD_KEYWORDS
from .seed import seed_sample_records
from .sheets import DEFAULT_WORKSHEET, auth_sheets, get_or_create_worksheet, open_spreadsheet, publish_table
from .stats import overview, sector_distribution
from .store import RecordStore
from .util import utc_ts
from .views import get_record, paginate

DEFAULT_DATABASE_URL = "sqlite:///form_responses.db"


def setup_logging(log_file: Optional[Path], level: str = "INFO") -> None:
    lvl = getattr(logging, level.upper(), logging.INFO)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(
        level=lvl,
        format="%(asctime)sZ %(levelname)s %(name)s: %(message)s",
        handlers=handlers,
        force=True,
    )


@dataclass(frozen=True)
class StoreEnv:
    database_url: str
    page_limit: int = DEFAULT_PAGE_LIMIT


@dataclass(frozen=True)
class SheetEnv:
    sheet_id: str
    worksheet: str
    service_account_json: str


def require(name: str, value: str | None) -> str:
    if not value:
        raise SystemExit(f"Missing required value: {name}")
    return value


def split_keywords(s: str) -> Tuple[str, ...]:
    found = tuple(k.strip().lower() for k in (s or "").split(",") if k.strip())
    return found or SECTOR_FIELD_KEYWORDS


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="form-responses")
    sub = p.add_subparsers(dest="cmd", required=True)

    def add_common(x):
        x.add_argument("--database-url", default=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL))
        x.add_argument("--log-level", default=os.getenv("LOG_LEVEL", "INFO"))
        x.add_argument("--backup-dir", default=os.getenv("BACKUP_DIR", "backups"))

    pi = sub.add_parser("ingest", help="Store one form-source payload (JSON file).")
    add_common(pi)
    pi.add_argument("--event-path", default=os.getenv("SUBMISSION_EVENT_PATH", ""), help="Path to payload JSON.")
    pi.add_argument("--sector-keywords", default=os.getenv("SECTOR_FIELD_KEYWORDS", ""))
    pi.add_argument(
        "--sa-json",
        default=os.getenv("GOOGLE_APPLICATION_CREDENTIALS"),
        help="Service account used to look up Drive file metadata for raw item payloads.",
    )

    pe = sub.add_parser("export", help="Write the responses or uploaded-documents workbook.")
    add_common(pe)
    pe.add_argument("--variant", choices=[RESPONSES, DOCUMENTS], default=RESPONSES)
    pe.add_argument("--out-dir", default=os.getenv("EXPORT_DIR", "exports"))

    pl = sub.add_parser("list", help="Print one page of responses as JSON.")
    add_common(pl)
    pl.add_argument("--page", type=int, default=1)
    pl.add_argument("--limit", type=int, default=None)

    pw = sub.add_parser("show", help="Print one response as JSON.")
    add_common(pw)
    pw.add_argument("--id", dest="record_id", required=True)

    ps = sub.add_parser("stats", help="Print sector distribution and upload counters as JSON.")
    add_common(ps)

    pg = sub.add_parser("sheets-sync", help="Publish the responses table to a Google worksheet.")
    add_common(pg)
    pg.add_argument("--sheet-id", default=os.getenv("GSHEET_ID"))
    pg.add_argument("--worksheet", default=os.getenv("GSHEET_WORKSHEET", DEFAULT_WORKSHEET))
    pg.add_argument("--sa-json", default=os.getenv("GOOGLE_APPLICATION_CREDENTIALS"))

    pb = sub.add_parser("backup", help="Back up the responses table to CSV.")
    add_common(pb)

    pd = sub.add_parser("seed", help="Insert sample responses (development only).")
    add_common(pd)
    pd.add_argument("--count", type=int, default=30)

    return p.parse_args(argv)


def load_store_env(args: argparse.Namespace) -> StoreEnv:
    limit = int(os.getenv("PAGE_LIMIT", str(DEFAULT_PAGE_LIMIT)))
    return StoreEnv(database_url=require("DATABASE_URL/--database-url", args.database_url), page_limit=limit)


def open_store(args: argparse.Namespace) -> RecordStore:
    return RecordStore.from_url(load_store_env(args).database_url)


def _start(args: argparse.Namespace, name: str) -> logging.Logger:
    log_path = Path(args.backup_dir) / f"run_{name}_utc_{utc_ts()}.log"
    setup_logging(log_path, args.log_level)
    return logging.getLogger(f"form_responses.{name}")


def load_event(event_path: str):
    try:
        return json.loads(Path(event_path).read_text(encoding="utf-8"))
    except OSError as e:
        raise ValidationError(f"Cannot read event file {event_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ValidationError(f"Event file {event_path} is not valid JSON: {e}") from e


def run_ingest(args: argparse.Namespace) -> int:
    log = _start(args, "ingest")
    event_path = require("SUBMISSION_EVENT_PATH/--event-path", args.event_path)
    payload = load_event(event_path)

    store = open_store(args)
    keywords = split_keywords(args.sector_keywords)
    if isinstance(payload, dict) and "items" in payload:
        resolver = DriveResolver.from_service_account(args.sa_json) if args.sa_json else None
        record = ingest_form_response(
            store,
            parse_items(payload["items"]),
            timestamp=parse_timestamp(payload.get("timestamp")),
            resolver=resolver,
            keywords=keywords,
        )
    else:
        record = ingest_payload(store, payload, keywords)
    log.info("Ingested submission id=%s sector=%s", record.id, record.sector)
    return 0


def run_export(args: argparse.Namespace) -> int:
    log = _start(args, "export")
    store = open_store(args)
    artifact = export_store(store, args.variant)

    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / artifact.filename
    out_path.write_bytes(artifact.content)
    log.info("Export written: %s", out_path)
    return 0


def run_list(args: argparse.Namespace) -> int:
    _start(args, "list")
    env = load_store_env(args)
    store = RecordStore.from_url(env.database_url)
    page = paginate(store, args.page, args.limit or env.page_limit)
    print(json.dumps(page.to_dict(), indent=2))
    return 0


def run_show(args: argparse.Namespace) -> int:
    _start(args, "show")
    store = open_store(args)
    print(json.dumps(get_record(store, args.record_id).to_dict(), indent=2))
    return 0


def run_stats(args: argparse.Namespace) -> int:
    _start(args, "stats")
    store = open_store(args)
    out = {
        "distribution": [s.to_dict() for s in sector_distribution(store)],
        "overview": overview(store).to_dict(),
    }
    print(json.dumps(out, indent=2))
    return 0


def run_sheets_sync(args: argparse.Namespace) -> int:
    log = _start(args, "sheets")
    env = SheetEnv(
        sheet_id=require("GSHEET_ID/--sheet-id", args.sheet_id),
        worksheet=require("GSHEET_WORKSHEET/--worksheet", args.worksheet),
        service_account_json=require("GOOGLE_APPLICATION_CREDENTIALS/--sa-json", args.sa_json),
    )
    store = open_store(args)

    gc = auth_sheets(env.service_account_json)
    sh = open_spreadsheet(gc, env.sheet_id)
    ws = get_or_create_worksheet(sh, env.worksheet)
    n = publish_table(ws, store.all_records())
    log.info("Sheets sync finished OK (%d rows)", n)
    return 0


def run_backup(args: argparse.Namespace) -> int:
    log = _start(args, "backup")
    store = open_store(args)
    csv_path = backup_to_csv(store, out_dir=args.backup_dir)
    log.info("CSV backup written: %s", csv_path)
    return 0


def run_seed(args: argparse.Namespace) -> int:
    log = _start(args, "seed")
    store = open_store(args)
    created = seed_sample_records(store, count=args.count)
    log.info("Created %d sample responses", len(created))
    for s in sector_distribution(store):
        log.info("  %s: %d", s.sector, s.count)
    return 0


COMMANDS = {
    "ingest": run_ingest,
    "export": run_export,
    "list": run_list,
    "show": run_show,
    "stats": run_stats,
    "sheets-sync": run_sheets_sync,
    "backup": run_backup,
    "seed": run_seed,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    handler = COMMANDS.get(args.cmd)
    if handler is None:
        raise SystemExit("Unknown command")
    try:
        return handler(args)
    except PortalError as e:
        logging.getLogger("form_responses.cli").error("%s failed: %s", args.cmd, e)
        return 1
