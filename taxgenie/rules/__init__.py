"""
Versioned, read-only tax rule tables.

    from taxgenie.rules import get_rule_book
"""
from taxgenie.rules.loader import get_rule_book, load_rule_book
from taxgenie.rules.schemas import RuleBook, RuleSet

__all__ = ["get_rule_book", "load_rule_book", "RuleBook", "RuleSet"]
