from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings

TWO_PLACES = Decimal("0.01")

PER_SQFT = "PER_SQFT"
PERCENT = "PERCENT"


def _money(value) -> Decimal:
    return Decimal(value or 0).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def gross_commission(rate, *, area_sq_ft, total_cost, mode=None) -> Decimal:
    mode = (mode or settings.BROKER_COMMISSION_MODE).upper()
    rate = Decimal(rate or 0)
    if mode == PERCENT:
        return _money(Decimal(total_cost or 0) * rate / 100)
    return _money(rate * Decimal(area_sq_ft or 0))


def compute_commission(broker, booking, mode=None) -> dict:
    """
    Commission owed to `broker` for `booking`:
      gross = rate x area_sq_ft          (PER_SQFT)
            = total_cost x rate / 100    (PERCENT)
      tds   = gross x tds_percentage / 100
      net   = gross - tds
    """
    gross = gross_commission(
        broker.commission_rate,
        area_sq_ft=booking.plot.area_sq_ft,
        total_cost=booking.total_cost,
        mode=mode,
    )
    tds = _money(gross * Decimal(broker.tds_percentage or 0) / 100)
    return {
        "gross_amount": gross,
        "tds_amount": tds,
        "net_amount": gross - tds,
    }
