import re


# Repeated-word artifacts left behind by PDF title extraction
_TITLE_FIXES = [
    (re.compile(r'(\w+)\s+(\w+)\s+\1', re.IGNORECASE), r'\1'),
    (re.compile(r'(\w+)\s+[a-z]\s+e\s+\1', re.IGNORECASE), r'\1'),
    (re.compile(r'(\w+)\s+ther\s+\1', re.IGNORECASE), r'\1'),
    (re.compile(r'(\w+)\s+of\s+ceptions\s+of', re.IGNORECASE), r'\1 of'),
    (re.compile(r'\b(\w+)\s+\1\b', re.IGNORECASE), r'\1'),
]


def clean_title(title):
    """Strip duplicated words from a title, falling back to the original."""
    if not title:
        return ''
    cleaned = title
    for pattern, replacement in _TITLE_FIXES:
        cleaned = pattern.sub(replacement, cleaned)
    cleaned = re.sub(r'\s+', ' ', cleaned).strip()
    return cleaned or title


def format_abstract(text):
    if not text:
        return 'No abstract provided.'
    text = re.sub(r'\s+', ' ', text)
    text = re.sub(r'([.!?])\s*([A-Z])', r'\1 \2', text)
    return text.strip()


def normalize_list(value):
    """Accept a list or a comma separated string; return trimmed, non-empty items."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        items = [str(v) for v in value]
    else:
        items = str(value).split(',')
    return [item.strip() for item in items if item.strip()]


def normalize_type(submission_type, status):
    if submission_type:
        return submission_type
    return 'final' if status == 'approved' else 'draft'

