"""
PromQL template expansion and window parsing.
"""

import re
from typing import Mapping, Union

# e.g. 5m, 1h, 30s, 1d
WINDOW_PATTERN = re.compile(r"^\d+[smhd]$")

PLACEHOLDERS = ("machine", "threshold", "window")


def is_valid_window(window: object) -> bool:
    """Check that a value is an integer-plus-unit duration string."""
    return isinstance(window, str) and WINDOW_PATTERN.fullmatch(window) is not None


def format_threshold(threshold: Union[int, float]) -> str:
    """Render a threshold for a query; whole numbers lose the trailing ``.0``."""
    if isinstance(threshold, float) and threshold.is_integer():
        return str(int(threshold))
    return str(threshold)


def expand_template(template: str, params: Mapping[str, object]) -> str:
    """
    Substitute ``$machine``, ``$threshold`` and ``$window`` into a template.

    Plain substring replacement in a single pass; values are not quoted or
    escaped, and placeholders introduced by a substituted value are left
    as they are.
    """
    values = {
        "machine": str(params["machine"]),
        "threshold": format_threshold(params["threshold"]),
        "window": str(params["window"]),
    }
    pattern = re.compile(r"\$(" + "|".join(PLACEHOLDERS) + r")")
    return pattern.sub(lambda m: values[m.group(1)], template)


def template_placeholders(template: str) -> set[str]:
    """Names of the placeholders a template references."""
    return set(re.findall(r"\$(" + "|".join(PLACEHOLDERS) + r")", template))
