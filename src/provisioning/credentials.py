"""Panel login credentials handed to the customer once, after provisioning."""

import re
import secrets
import string
import time
from dataclasses import dataclass, field

_PASSWORD_ALPHABET = string.ascii_letters + string.digits + "!@#$%^&*"
PASSWORD_LENGTH = 16


@dataclass(frozen=True)
class ProvisioningCredentials:
    """Never persisted. The password is excluded from ``repr`` so it cannot
    leak through log lines that format the object.
    """

    panel_url: str
    username: str
    email: str
    password: str = field(repr=False)
    server_id: str = ""
    server_name: str = ""


def generate_password(length: int = PASSWORD_LENGTH) -> str:
    return "".join(secrets.choice(_PASSWORD_ALPHABET) for _ in range(length))


def phone_digits(phone: str) -> str:
    return re.sub(r"\D", "", phone or "")


def panel_username(phone: str, now: float | None = None) -> str:
    """``user_<last 8 phone digits>_<last 6 digits of epoch seconds>``."""
    stamp = str(int(now if now is not None else time.time()))[-6:]
    return f"user_{phone_digits(phone)[-8:]}_{stamp}"


def panel_email(phone: str, order_id: str, domain: str) -> str:
    """One panel login per order, so repeat customers never collide."""
    return f"{phone_digits(phone)}+{order_id.lower()}@{domain}"
