from __future__ import annotations

import csv
from pathlib import Path

from .export import responses_table
from .rendering import guard_text
from .store import RecordStore
from .util import utc_ts


def backup_to_csv(store: RecordStore, out_dir: str) -> Path:
    Path(out_dir).mkdir(parents=True, exist_ok=True)
    csv_path = Path(out_dir) / f"form_responses_backup_utc_{utc_ts()}.csv"

    rows = responses_table(store.all_records())

    with csv_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        for r in rows:
            w.writerow([str(guard_text(v)) for v in r])

    return csv_path
