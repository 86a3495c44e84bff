"""Map file line numbers to GitHub review-comment positions.

GitHub defines the position as the number of lines down from the first "@@"
hunk header of a file's patch. The line just below that header is position 1,
and the count keeps increasing through later hunk headers until the end of
the patch.
"""

import re

from .diff_types import Side

HUNK_HEADER = re.compile(r"^@@ -(\d+)(?:,\d+)? \+(\d+)(?:,\d+)? @@")


def find_position(patch: str, target_line: int, side: Side = Side.RIGHT) -> int | None:
    """Find the diff position of a line in a unified diff patch.

    Args:
        patch: Unified diff text for a single file
        target_line: Line number in the old (LEFT) or new (RIGHT) file
        side: Which file's numbering target_line uses

    Returns:
        1-based position counted from the first hunk header, or None if the
        line is not part of any hunk
    """
    if not patch or target_line < 1:
        return None

    old_line = 0
    new_line = 0
    first_hunk: int | None = None

    for i, line in enumerate(patch.split("\n")):
        match = HUNK_HEADER.match(line)
        if match:
            old_line = int(match.group(1)) - 1
            new_line = int(match.group(2)) - 1
            if first_hunk is None:
                first_hunk = i
            continue

        if first_hunk is None:
            continue

        if line.startswith(" "):
            old_line += 1
            new_line += 1
            on_left = on_right = True
        elif line.startswith("-"):
            old_line += 1
            on_left, on_right = True, False
        elif line.startswith("+"):
            new_line += 1
            on_left, on_right = False, True
        else:
            continue

        if side == Side.LEFT and on_left and old_line == target_line:
            return i - first_hunk
        if side == Side.RIGHT and on_right and new_line == target_line:
            return i - first_hunk

    return None
