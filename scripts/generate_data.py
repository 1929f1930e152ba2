"""
Synthetic schedule generator for CheckSchedule.

Implements deterministic pseudo-random schedule rows (self slots paired with
competitor slots), CSV emission, and loading into the SQLite store.
"""

from __future__ import annotations

import csv
import random
import sys
import tempfile
import time
from datetime import date, timedelta
from pathlib import Path
from typing import Dict, List, Optional

import typer

from checkschedule.domain.calendar import format_date, parse_date
from checkschedule.infrastructure.store import INSERT_COLUMNS, ScheduleStore

app = typer.Typer(help="Generate synthetic schedule rows and load them into SQLite.")

COMPETITORS = ["현대홈쇼핑", "GS홈쇼핑", "롯데홈쇼핑", "CJ온스타일", "SK스토아", "KT알파"]
TAXONOMY = {
    "의류": {"아우터": ["A브랜드", "B브랜드"], "니트": ["C브랜드"]},
    "식품": {"건강식품": ["D브랜드", "E브랜드"], "간편식": ["F브랜드"]},
    "리빙": {"침구": ["G브랜드"], "주방": ["H브랜드", "I브랜드"]},
    "뷰티": {"스킨케어": ["J브랜드"]},
}
MD_NAMES = ["패션", "푸드", "리빙", "뷰티"]
SLOT_MINUTES = [40, 60, 80]

CSV_COLUMNS = [column for column in INSERT_COLUMNS if column != "raw_data"]


def _clock(minutes: int) -> str:
    minutes %= 1440
    return f"{minutes // 60:02d}:{minutes % 60:02d}:00"


def _generate_rows(start: date, days: int, slots_per_day: int, seed: int) -> List[Dict[str, object]]:
    rng = random.Random(seed)
    rows: List[Dict[str, object]] = []
    exec_date = format_date(start)
    for offset in range(days):
        day = format_date(start + timedelta(days=offset))
        cursor = 6 * 60
        for slot in range(slots_per_day):
            length = rng.choice(SLOT_MINUTES)
            self_start, self_end = cursor, cursor + length
            cursor = self_end
            prog_name = f"신세계 기획전 {offset + 1}-{slot + 1}"
            md_name = rng.choice(MD_NAMES)
            pairs = rng.randint(0, 3)
            if pairs == 0:
                rows.append(
                    {
                        "exec_date": exec_date,
                        "bd_date": day,
                        "bd_btime": _clock(self_start),
                        "bd_etime": _clock(self_end),
                        "prog_name": prog_name,
                        "md_name": md_name,
                    }
                )
                continue
            for _ in range(pairs):
                mid = rng.choice(sorted(TAXONOMY))
                small = rng.choice(sorted(TAXONOMY[mid]))
                brand = rng.choice(TAXONOMY[mid][small])
                other_start = self_start + rng.randint(-30, 30)
                other_length = rng.choice(SLOT_MINUTES)
                sche_score = round(rng.uniform(0, 10), 2)
                item_score = round(rng.uniform(0, 2), 2)
                rows.append(
                    {
                        "exec_date": exec_date,
                        "bd_date": day,
                        "bd_btime": _clock(self_start),
                        "bd_etime": _clock(self_end),
                        "prog_name": prog_name,
                        "md_name": md_name,
                        "other_broad_name": rng.choice(COMPETITORS),
                        "other_btime": _clock(other_start),
                        "other_etime": _clock(other_start + other_length),
                        "other_lgroup_name": mid,
                        "other_mgroup_name": mid,
                        "other_sgroup_name": small,
                        "brand_name": brand,
                        "other_product_name": f"{brand} {small} 세트",
                        "other_item_desc": f"{brand}의 {small} 상품 구성",
                        "product_sale_price": rng.randrange(19_900, 399_000, 1000),
                        "match_score": rng.randint(0, 100),
                        "sche_sml_score": sche_score,
                        "item_sml_score": item_score,
                        "comp_alert": "동시간대 유사상품 편성" if sche_score >= 9.5 else "",
                        "weights_time": float(min(length, other_length)),
                    }
                )
    return rows


def _write_csv(csv_path: Path, rows: List[Dict[str, object]]) -> None:
    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_COLUMNS, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(rows)


def _load_into_db(db_path: Path, rows: List[Dict[str, object]]) -> int:
    with ScheduleStore(db_path) as store:
        store.initialize_schema()
        return store.insert_rows(rows)


@app.command()
def main(
    start: str = typer.Option(
        "2025/11/17",
        "--start",
        "-s",
        help="First broadcast date (YYYY/MM/DD).",
    ),
    days: int = typer.Option(
        7,
        "--days",
        help="Number of consecutive days to generate.",
    ),
    slots_per_day: int = typer.Option(
        14,
        "--slots",
        help="Self-broadcast slots per day.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Optional CSV output path (if omitted, a temp file will be used).",
    ),
    db: Path = typer.Option(
        Path("schedule.db"),
        "--db",
        help="SQLite database to load into.",
    ),
    no_load: bool = typer.Option(
        False,
        "--no-load",
        help="Only generate CSV; skip loading into SQLite.",
    ),
) -> None:
    """
    Generate synthetic schedule rows and optionally load them into SQLite.
    """
    started = time.perf_counter()
    try:
        first_day = parse_date(start)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    if output:
        csv_path = output
        csv_path.parent.mkdir(parents=True, exist_ok=True)
    else:
        tmpdir = Path(tempfile.mkdtemp(prefix="checkschedule_csv_"))
        csv_path = tmpdir / "schedules.csv"

    rows = _generate_rows(first_day, days=days, slots_per_day=slots_per_day, seed=seed)
    _write_csv(csv_path, rows)
    typer.echo(f"Generated {len(rows):,} rows -> {csv_path} (days={days}, seed={seed})")

    if no_load:
        typer.echo("Skipping load (no-load flag set).")
        return

    inserted = _load_into_db(db, rows)
    typer.echo(f"Loaded {inserted:,} rows into {db} in {time.perf_counter() - started:.2f}s.")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
