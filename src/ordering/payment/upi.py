"""UPI payment-intent strings.

A manual-payment order carries a ``upi://pay`` link naming the payee, the
amount to two decimals, the currency and a transaction note unique to the
moment the order was placed. Customers scan it, pay out of band and upload
a screenshot as proof.
"""

import re
import time
from urllib.parse import quote

from ordering.errors import InvalidPayeeFormat, MissingPayee
from ordering.pricing.engine import to_money

CURRENCY = "INR"

# handle@provider: one "@", a handle of 2+ characters and a provider of 2+
_PAYEE_PATTERN = re.compile(r"^[A-Za-z0-9._-]{2,256}@[A-Za-z][A-Za-z0-9]{1,63}$")


def validate_payee(payee: str | None) -> str:
    """Return the normalised payee or raise MissingPayee/InvalidPayeeFormat."""
    payee = (payee or "").strip()
    if not payee:
        raise MissingPayee()
    if payee.count("@") != 1 or not _PAYEE_PATTERN.match(payee):
        raise InvalidPayeeFormat(f'Invalid UPI ID "{payee}". Expected the form handle@provider.')
    return payee


def transaction_note(store_name: str) -> str:
    return f"{store_name}-{time.time_ns() // 1_000_000}"


def build_payment_uri(payee: str, amount, note: str) -> str:
    return (
        f"upi://pay?pa={quote(payee, safe='')}"
        f"&am={to_money(amount):.2f}"
        f"&cu={CURRENCY}"
        f"&tn={quote(note, safe='')}"
    )
