import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path

import pandas as pd
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from plots.models import Plot
from setup.models import Layout

log = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("plot_number", "area_sq_mt", "area_sq_ft")

# header aliases seen in the survey sheets
RENAME_MAP = {
    "plotNumber": "plot_number",
    "Plot No": "plot_number",
    "areaSqMt": "area_sq_mt",
    "Area (sq mt)": "area_sq_mt",
    "areaSqFt": "area_sq_ft",
    "Area (sq ft)": "area_sq_ft",
    "rate": "rate_per_sq_ft",
    "Rate (psf)": "rate_per_sq_ft",
}


def read_sheet(path):
    path = Path(path)
    if not path.exists():
        raise CommandError(f"File not found: {path}")
    if path.suffix.lower() == ".csv":
        df = pd.read_csv(path)
    else:
        df = pd.read_excel(path, engine="openpyxl")

    df.rename(columns=RENAME_MAP, inplace=True)
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise CommandError(f"Missing column(s): {', '.join(missing)}")

    df = df.astype(object).where(df.notnull(), None)
    return df.to_dict(orient="records")


def _decimal(value, field, row_no):
    if value is None or str(value).strip() == "":
        return None
    try:
        return Decimal(str(value).replace(",", "").strip())
    except InvalidOperation:
        raise CommandError(f"Row {row_no}: invalid {field} {value!r}")


class Command(BaseCommand):
    help = (
        "Upserts the plot inventory of one layout from a CSV / XLSX sheet "
        "(columns: plot_number, area_sq_mt, area_sq_ft[, rate_per_sq_ft])."
    )

    def add_arguments(self, parser):
        parser.add_argument("path", help="CSV or XLSX file")
        parser.add_argument("--layout", required=True, help="Layout code or name; created if missing")
        parser.add_argument("--rate", default=None, help="Default rate per sq ft for rows without one")

    def handle(self, *args, **options):
        rows = read_sheet(options["path"])
        default_rate = _decimal(options["rate"], "rate", 0)

        layout_key = options["layout"].strip()
        layout = Layout.objects.filter(code__iexact=layout_key).first()
        if layout is None:
            layout, _ = Layout.objects.get_or_create(name=layout_key)

        created = updated = 0
        with transaction.atomic():
            for row_no, row in enumerate(rows, start=2):
                number = row.get("plot_number")
                if number is None:
                    continue
                try:
                    number = int(float(number))
                except (TypeError, ValueError):
                    raise CommandError(f"Row {row_no}: invalid plot_number {row['plot_number']!r}")

                defaults = {
                    "area_sq_mt": _decimal(row.get("area_sq_mt"), "area_sq_mt", row_no),
                    "area_sq_ft": _decimal(row.get("area_sq_ft"), "area_sq_ft", row_no),
                }
                if defaults["area_sq_mt"] is None or defaults["area_sq_ft"] is None:
                    raise CommandError(f"Row {row_no}: area is required")

                rate = _decimal(row.get("rate_per_sq_ft"), "rate_per_sq_ft", row_no)
                if rate is None:
                    rate = default_rate
                if rate is not None:
                    defaults["rate_per_sq_ft"] = rate

                _plot, was_created = Plot.objects.update_or_create(
                    layout=layout, plot_number=number, defaults=defaults
                )
                if was_created:
                    created += 1
                else:
                    updated += 1

        log.info("🌱 [seed_plots] layout=%s created=%s updated=%s", layout.code, created, updated)
        self.stdout.write(
            self.style.SUCCESS(f"{layout.code}: {created} plot(s) created, {updated} updated")
        )
