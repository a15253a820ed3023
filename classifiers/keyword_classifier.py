"""
Keyword Classifier Module - Map transaction descriptions to ledger categories

Categories are checked in table order and the first one with a keyword
contained in the description wins. The table is loaded once at import:
from CATEGORY_RULES_FILE when that file exists, otherwise the defaults below.
"""

import json
import os
from collections import OrderedDict
from typing import Optional, Tuple

from config import CATEGORY_RULES_FILE

MISCELLANEOUS = 'Miscellaneous'

DEFAULT_CATEGORY_RULES = (
    ('Salary', ('salary', 'payroll', 'wages')),
    ('Rent', ('rent', 'lease')),
    ('Utilities', ('electricity', 'water', 'gas', 'utility')),
    ('Telephone', ('mobile', 'phone', 'airtel', 'vodafone', 'jio')),
    ('Internet', ('internet', 'broadband', 'wifi')),
    ('Insurance', ('insurance', 'premium', 'lic')),
    ('Bank Charges', ('charges', 'fee', 'sms', 'atm')),
    ('Interest', ('interest', 'int.cr', 'int.dr')),
    ('Cash Withdrawal', ('atm', 'cash', 'withdrawal')),
    ('Transfer', ('transfer', 'neft', 'rtgs', 'imps', 'upi')),
    ('Purchase', ('purchase', 'shopping', 'amazon', 'flipkart')),
    ('Fuel', ('petrol', 'diesel', 'fuel', 'hp', 'iocl')),
)

CategoryRules = Tuple[Tuple[str, Tuple[str, ...]], ...]


def load_category_rules(rules_file: Optional[str] = None) -> CategoryRules:
    """
    Load the category table

    Args:
        rules_file: JSON object of category -> keyword list, in priority order

    Returns:
        Frozen tuple of (category, keywords) pairs
    """
    if not rules_file or not os.path.exists(rules_file):
        return DEFAULT_CATEGORY_RULES

    with open(rules_file, 'r', encoding='utf-8') as f:
        data = json.load(f, object_pairs_hook=OrderedDict)

    if not isinstance(data, dict) or not data:
        raise ValueError(f"Category rules file must be a non-empty JSON object: {rules_file}")

    rules = []
    for category, keywords in data.items():
        if not isinstance(keywords, list) or not all(isinstance(kw, str) for kw in keywords):
            raise ValueError(f"Keywords for category '{category}' must be a list of strings")
        rules.append((category, tuple(kw.lower() for kw in keywords if kw.strip())))

    print(f"[INFO] Loaded {len(rules)} categories from {rules_file}", flush=True)
    return tuple(rules)


CATEGORY_RULES = load_category_rules(CATEGORY_RULES_FILE)


class KeywordClassifier:
    """Classify a description into the first category whose keyword it contains"""

    def __init__(self, rules: Optional[CategoryRules] = None):
        self.rules = rules if rules is not None else CATEGORY_RULES

    def categorize(self, description: Optional[str]) -> str:
        """
        Get the category for a description

        Args:
            description: Free-text transaction narration

        Returns:
            Category name, or 'Miscellaneous' when nothing matches
        """
        if not description:
            return MISCELLANEOUS

        description_lower = str(description).lower()
        for category, keywords in self.rules:
            if any(kw in description_lower for kw in keywords):
                return category

        return MISCELLANEOUS

    def get_categories(self) -> list:
        """Category names in priority order"""
        return [category for category, _ in self.rules]


_default_classifier = KeywordClassifier()


def categorize(description: Optional[str]) -> str:
    """Categorize with the process-wide category table"""
    return _default_classifier.categorize(description)
