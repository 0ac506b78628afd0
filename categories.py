from models import SpendingBucket

NEEDS_KEYWORDS = (
    "groceries",
    "rent",
    "transport",
    "utilities",
    "insurance",
    "healthcare",
    "bills",
)
WANTS_KEYWORDS = (
    "shopping",
    "entertainment",
    "dining",
    "hobbies",
    "travel",
    "subscriptions",
)
SAVINGS_KEYWORDS = ("savings", "investment", "retirement", "emergency fund")

# Checked in order; the first bucket with a matching keyword wins.
BUCKET_KEYWORDS = (
    (SpendingBucket.needs, NEEDS_KEYWORDS),
    (SpendingBucket.wants, WANTS_KEYWORDS),
    (SpendingBucket.savings, SAVINGS_KEYWORDS),
)


def _contains_any(category: str, keywords: tuple[str, ...]) -> bool:
    lowered = (category or "").lower()
    return any(keyword in lowered for keyword in keywords)


def categorize(category: str) -> SpendingBucket:
    """
    Classify a free-text expense category into needs, wants or savings.
    Uncategorised names fall into wants.
    """
    for bucket, keywords in BUCKET_KEYWORDS:
        if _contains_any(category, keywords):
            return bucket
    return SpendingBucket.wants


def is_savings_category(category: str) -> bool:
    return _contains_any(category, SAVINGS_KEYWORDS)
