from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings

from core.exceptions import ValidationError

CENTS = Decimal('0.01')


def to_money(value, field='amount', allow_zero=False):
    """Coerce ``value`` to a positive (or, with ``allow_zero``, non-negative) two-decimal Decimal."""
    if isinstance(value, float):
        value = repr(value)
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field} must be a number", field=field)
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a number", field=field)
    if allow_zero and amount < 0:
        raise ValidationError(f"{field} cannot be negative", field=field)
    if not allow_zero and amount <= 0:
        raise ValidationError(f"{field} must be greater than 0", field=field)
    if amount != amount.quantize(CENTS):
        raise ValidationError(f"{field} cannot have more than two decimal places", field=field)
    return amount.quantize(CENTS)


def round_money(value):
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def compute_commission(final_price, rate=None):
    """
    Split ``final_price`` into the platform fee and the provider's earnings.

    The fee is rounded half-up to cents and the earnings are whatever remains,
    so the two always add back to the final price exactly.
    """
    price = to_money(final_price, field='final_price')
    rate = Decimal(str(settings.COMMISSION_RATE if rate is None else rate))
    if rate < 0 or rate > 1:
        raise ValidationError("commission rate must be between 0 and 1", field='rate')
    company_fee = round_money(price * rate)
    return {
        'commission_rate': rate,
        'company_fee': company_fee,
        'provider_earnings': price - company_fee,
    }
