"""Terminal styling and the warning and success messages shown to learners."""

import os
import sys

_CODES = {
    "bold": "1",
    "red": "31",
    "green": "32",
    "blue": "34",
}
_RESET = "\x1b[0m"


def _colors_enabled():
    if os.environ.get("NO_COLOR"):
        return False
    force = os.environ.get("CLICOLOR_FORCE", "")
    if force and force != "0":
        return True
    if os.environ.get("CLICOLOR") == "0":
        return False
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty()) and os.environ.get("TERM") != "dumb"


def style(text, *args):
    """Wrap ``text`` in ANSI codes for the named styles when colours are enabled."""
    unknown = [name for name in args if name not in _CODES]
    if unknown:
        raise ValueError(f"unknown style: {', '.join(unknown)}")
    if not args or not _colors_enabled():
        return str(text)
    prefix = "".join(f"\x1b[{_CODES[name]}m" for name in args)
    return f"{prefix}{text}{_RESET}"


def bold(text):
    """Return ``text`` in bold."""
    return style(text, "bold")


def _no_emoji():
    return "NO_EMOJI" in os.environ


def warn(message):
    """Print a warning line in red."""
    marker = "!" if _no_emoji() else "⚠️ "
    print(f"{style(marker, 'red')} {style(message, 'red')}")


def success(message):
    """Print a success line in green."""
    marker = "✓" if _no_emoji() else "✅"
    print(f"{style(marker, 'green')} {style(message, 'green')}")