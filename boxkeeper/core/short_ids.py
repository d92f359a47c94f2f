"""
Short human-shareable identifiers for boxes and QR codes.
"""
import secrets
import string

BOX_SHORT_ID_ALPHABET = string.ascii_letters + string.digits
BOX_SHORT_ID_LENGTH = 10

QR_SHORT_ID_PREFIX = "QR-"
QR_SHORT_ID_ALPHABET = string.ascii_uppercase + string.digits
QR_SHORT_ID_LENGTH = 6
QR_SHORT_ID_PATTERN = r"^QR-[A-Z0-9]{6}$"


def generate_box_short_id() -> str:
    """Random 10-character alphanumeric id, e.g. ``aZ3kP9qLm2``."""
    return "".join(secrets.choice(BOX_SHORT_ID_ALPHABET) for _ in range(BOX_SHORT_ID_LENGTH))


def generate_qr_short_id() -> str:
    """Random printable label in the ``QR-XXXXXX`` format."""
    random_part = "".join(secrets.choice(QR_SHORT_ID_ALPHABET) for _ in range(QR_SHORT_ID_LENGTH))
    return f"{QR_SHORT_ID_PREFIX}{random_part}"
