"""Collision-avoiding names for items moved or created over an existing name."""

from __future__ import annotations

import os
import re
from datetime import UTC, datetime

# Matches a suffix previously appended by name_with_current_date.
_DATE_SUFFIX = re.compile(r"( )*\(\d{4}-\d{2}-\d{2} \d{2}-\d{2} UTC\)( )*$")

SUFFIX_FORMAT = "%Y-%m-%d %H-%M"


def name_with_current_date(
    name: str,
    is_folder: bool = False,
    now: datetime | None = None,
) -> str:
    """Append the current UTC date and time to a name.

    Any suffix added by an earlier call is replaced, so repeated renames never
    stack suffixes. File extensions stay at the end of the name.

    Args:
        name: The name that collided.
        is_folder: Folders have no extension, so the whole name is the base.
        now: Timestamp to use instead of the current time.

    Returns:
        The name with a " (YYYY-MM-DD HH-MM UTC)" suffix.

    Example:
        >>> name_with_current_date("Report.pdf", now=datetime(2024, 3, 1, 10, 15, tzinfo=UTC))
        'Report (2024-03-01 10-15 UTC).pdf'
    """
    if is_folder:
        base_name, ext = name, ""
    else:
        base_name, ext = os.path.splitext(name)

    stamp = (now or datetime.now(UTC)).astimezone(UTC).strftime(SUFFIX_FORMAT)
    return f"{_DATE_SUFFIX.sub('', base_name)} ({stamp} UTC){ext}"
