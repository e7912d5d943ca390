from typing import Dict, Iterable, Mapping

# Shipping fields that are safe to log once masked
SHIPPING_LOG_FIELDS = ("name", "email", "phone", "city", "country")


def mask_email(address: str) -> str:
    name, _, domain = address.partition("@")
    return (name[:2] + "***@" + domain) if name else "***@" + domain


def mask_value(value):
    if not isinstance(value, str):
        return value
    if "@" in value:
        return mask_email(value)
    if len(value) > 12:
        return value[:4] + "..." + value[-4:]
    return "***"


def sanitize_payload(payload: Mapping, allowed_keys: Iterable[str]) -> Dict:
    """Return a copy of payload with only allowed keys, values masked."""
    return {key: mask_value(payload[key]) for key in allowed_keys if key in payload}


def masked_shipping(shipping: Mapping) -> Dict:
    """Shipping info reduced to what may appear in a log line."""
    return sanitize_payload(shipping or {}, SHIPPING_LOG_FIELDS)
