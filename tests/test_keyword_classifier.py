"""Tests for keyword categorization."""

import json

import pytest

from classifiers import MISCELLANEOUS, KeywordClassifier, categorize, load_category_rules
from classifiers.keyword_classifier import DEFAULT_CATEGORY_RULES


class TestCategorize:
    """Default category table."""

    def test_transfer(self):
        assert categorize("NEFT TRANSFER TO JOHN") == "Transfer"

    def test_no_match(self):
        assert categorize("random text xyz") == MISCELLANEOUS

    def test_empty_and_none(self):
        assert categorize("") == MISCELLANEOUS
        assert categorize(None) == MISCELLANEOUS

    def test_case_insensitive(self):
        assert categorize("Monthly SALARY credit") == "Salary"

    def test_first_category_wins(self):
        """'atm' is listed under Bank Charges before Cash Withdrawal."""
        assert categorize("ATM CASH") == "Bank Charges"

    def test_utilities(self):
        assert categorize("ELECTRICITY BILL MARCH") == "Utilities"

    def test_twelve_categories_in_order(self):
        classifier = KeywordClassifier(DEFAULT_CATEGORY_RULES)
        assert classifier.get_categories() == [
            "Salary", "Rent", "Utilities", "Telephone", "Internet", "Insurance",
            "Bank Charges", "Interest", "Cash Withdrawal", "Transfer", "Purchase", "Fuel",
        ]


class TestCategoryRulesFile:
    """Replacing the table from JSON."""

    def test_missing_file_uses_defaults(self, tmp_path):
        assert load_category_rules(str(tmp_path / "absent.json")) is DEFAULT_CATEGORY_RULES
        assert load_category_rules(None) is DEFAULT_CATEGORY_RULES

    def test_file_order_is_priority(self, tmp_path):
        rules_file = tmp_path / "rules.json"
        rules_file.write_text(json.dumps({"Travel": ["uber", "OLA"], "Food": ["swiggy", "uber eats"]}))

        rules = load_category_rules(str(rules_file))
        classifier = KeywordClassifier(rules)

        assert classifier.get_categories() == ["Travel", "Food"]
        assert classifier.categorize("UBER EATS ORDER") == "Travel"
        assert classifier.categorize("ola ride") == "Travel"
        assert classifier.categorize("NEFT TRANSFER") == MISCELLANEOUS

    def test_invalid_keywords_rejected(self, tmp_path):
        rules_file = tmp_path / "rules.json"
        rules_file.write_text(json.dumps({"Travel": "uber"}))

        with pytest.raises(ValueError, match="Travel"):
            load_category_rules(str(rules_file))

    def test_non_object_rejected(self, tmp_path):
        rules_file = tmp_path / "rules.json"
        rules_file.write_text(json.dumps(["uber"]))

        with pytest.raises(ValueError):
            load_category_rules(str(rules_file))
