"""
Classifiers Package - Transaction categorization
"""

from .keyword_classifier import (CATEGORY_RULES, MISCELLANEOUS, KeywordClassifier, categorize,
                                 load_category_rules)

__all__ = [
    'KeywordClassifier',
    'categorize',
    'load_category_rules',
    'CATEGORY_RULES',
    'MISCELLANEOUS'
]
