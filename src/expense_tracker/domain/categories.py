from typing import Dict, List, Tuple

# Ordered: keyword matching walks this table top to bottom.
CATEGORIES: Dict[str, Tuple[str, ...]] = {
    "Food": ("Dining Out", "Takeout", "Coffee"),
    "Groceries": ("Supermarket", "Vegetables", "Meat"),
    "Travel": ("Flight", "Hotel", "Taxi", "Fuel"),
    "Utilities": ("Electricity", "Water", "Internet", "Mobile"),
    "Entertainment": ("Movies", "Streaming", "Games"),
    "Shopping": ("Clothing", "Electronics", "Accessories"),
    "Health": ("Medicine", "Doctor", "Gym"),
    "Services": ("Repairs", "Cleaning", "Maintenance"),
    "Rent/Mortgage": ("Rent", "Mortgage", "Maintenance"),
    "Education": ("Books", "Courses", "School Fees"),
    "Gifts/Donations": ("Birthday", "Charity", "Wedding"),
    "Other": ("Miscellaneous", "Uncategorized"),
}

CATEGORY_NAMES: Tuple[str, ...] = tuple(CATEGORIES)
DEFAULT_CATEGORY = "Other"


def is_known_category(value: object) -> bool:
    return isinstance(value, str) and value in CATEGORIES


def keyword_pairs() -> List[Tuple[str, str]]:
    """Flatten the table into (category, lower-cased keyword) pairs, in order."""
    return [(category, keyword.lower()) for category, keywords in CATEGORIES.items() for keyword in keywords]
