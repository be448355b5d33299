"""Strip markdown and commentary from generated code."""

import re

FENCE_OPEN = re.compile(r"```[a-zA-Z]*\n")
FENCE = "```"

# (pattern, replace only the first match)
COMMENTARY_PATTERNS: tuple[tuple[re.Pattern[str], bool], ...] = (
    (re.compile(r"^Here's the.*?:\s*", re.IGNORECASE), True),
    (re.compile(r"^This code.*?:\s*", re.IGNORECASE), True),
    (re.compile(r"^The following.*?:\s*", re.IGNORECASE), True),
    (re.compile(r"^Below is.*?:\s*", re.IGNORECASE), True),
    (re.compile(r"^Here are.*?:\s*", re.IGNORECASE), True),
    (re.compile(r"^\s*Note:.*$", re.MULTILINE), False),
    (re.compile(r"^\s*Important:.*$", re.MULTILINE), False),
    (re.compile(r"^\s*--.*$", re.MULTILINE), False),
    (re.compile(r"^\s*/\*.*?\*/", re.MULTILINE | re.DOTALL), False),
    (re.compile(r"^\s*//.*$", re.MULTILINE), False),
)

CODE_PREFIXES = (
    "create table",
    "create index",
    "alter table",
    "use ",
    "db.",
    "drop table",
    "insert into",
)


def is_code_start(line: str) -> bool:
    """Whether a line looks like the first statement of the code."""
    lowered = line.strip().lower()
    return lowered.startswith(CODE_PREFIXES) or "collection" in lowered


def clean_code_response(response: str) -> str:
    """Remove fences, lead-in sentences and comments from a model response."""
    cleaned = FENCE_OPEN.sub("", response).replace(FENCE, "")

    for pattern, first_only in COMMENTARY_PATTERNS:
        cleaned = pattern.sub("", cleaned, count=1 if first_only else 0)

    lines = cleaned.strip().split("\n")
    start = next((i for i, line in enumerate(lines) if is_code_start(line)), 0)
    return "\n".join(lines[start:]).strip()
