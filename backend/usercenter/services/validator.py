import re

from usercenter.exceptions import ParamError

ACCOUNT_MIN_LENGTH = 6
PASSWORD_MIN_LENGTH = 8

_ACCOUNT_RE = re.compile(r"[A-Za-z][A-Za-z0-9]*")
_PASSWORD_RE = re.compile(r"[A-Za-z0-9]+")


def has_blank(*values: str | None) -> bool:
    """Return True if any value is None, empty or whitespace only."""
    return any(v is None or not v.strip() for v in values)


def validate_account(account: str | None) -> None:
    if has_blank(account):
        raise ParamError("Account must not be blank")
    if len(account) < ACCOUNT_MIN_LENGTH:
        raise ParamError(f"Account must be at least {ACCOUNT_MIN_LENGTH} characters")
    if account[0].isdigit():
        raise ParamError("Account must not start with a digit")
    if not _ACCOUNT_RE.fullmatch(account):
        raise ParamError("Account may only contain letters and digits")


def validate_password(password: str | None) -> None:
    if has_blank(password):
        raise ParamError("Password must not be blank")
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ParamError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    if not _PASSWORD_RE.fullmatch(password):
        raise ParamError("Password may only contain letters and digits")
