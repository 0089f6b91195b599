"""
Two policies: sign-up only enforces a length window, a reset also demands
mixed character classes. Each returns (ok, messages) so callers can hand
every failure back at once.
"""
import re
from typing import List, Tuple

from flask import current_app

_DEFAULTS = {
    "REGISTER_PASSWORD_MIN_LEN": 6,
    "RESET_PASSWORD_MIN_LEN": 8,
    "PASSWORD_MAX_LEN": 128,
    "PASSWORD_REQUIRE_UPPER": True,
    "PASSWORD_REQUIRE_LOWER": True,
    "PASSWORD_REQUIRE_DIGIT": True,
    "PASSWORD_REQUIRE_SYMBOL": True,
}

# (config switch, pattern, what is missing)
_CHARACTER_RULES = (
    ("PASSWORD_REQUIRE_UPPER", re.compile(r"[A-Z]"), "an uppercase letter"),
    ("PASSWORD_REQUIRE_LOWER", re.compile(r"[a-z]"), "a lowercase letter"),
    ("PASSWORD_REQUIRE_DIGIT", re.compile(r"\d"), "a number"),
    ("PASSWORD_REQUIRE_SYMBOL", re.compile(r"[^A-Za-z0-9]"), "a symbol"),
)


def _cfg(name: str):
    try:
        return current_app.config.get(name, _DEFAULTS[name])
    except RuntimeError:
        # outside an app context
        return _DEFAULTS[name]


def _check(pw, min_key: str, character_rules: bool) -> Tuple[bool, List[str]]:
    if not isinstance(pw, str):
        return False, ["Password must be a string"]

    min_len = int(_cfg(min_key))
    max_len = int(_cfg("PASSWORD_MAX_LEN"))
    errors = []
    if len(pw) < min_len:
        errors.append(f"Password must be at least {min_len} characters")
    if len(pw) > max_len:
        errors.append(f"Password must be at most {max_len} characters")

    if character_rules:
        for key, pattern, missing in _CHARACTER_RULES:
            if _cfg(key) and not pattern.search(pw):
                errors.append(f"Password must include {missing}")

    return not errors, errors


def validate_registration_password(pw) -> Tuple[bool, List[str]]:
    return _check(pw, "REGISTER_PASSWORD_MIN_LEN", character_rules=False)


def validate_reset_password(pw) -> Tuple[bool, List[str]]:
    return _check(pw, "RESET_PASSWORD_MIN_LEN", character_rules=True)
