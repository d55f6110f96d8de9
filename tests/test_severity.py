"""
Tests for severity classification.
"""

import itertools
import unittest

from src.driftwatch.models import Change, Severity
from src.driftwatch.severity import determine_severity, parse_severity
from src.driftwatch.types import ABSENT


class TestDetermineSeverity(unittest.TestCase):
    def test_existence_is_critical(self) -> None:
        self.assertEqual(
            determine_severity([Change("existence", "exists", "deleted")]), Severity.CRITICAL
        )

    def test_encryption_and_public_access_are_high(self) -> None:
        self.assertEqual(determine_severity([Change("encryption", "enabled", "disabled")]), Severity.HIGH)
        self.assertEqual(
            determine_severity([Change("public_access.block_public_acls", True, False)]), Severity.HIGH
        )

    def test_other_fields_are_medium(self) -> None:
        self.assertEqual(determine_severity([Change("tags.Env", "prod", ABSENT)]), Severity.MEDIUM)

    def test_nested_path_is_not_confused_with_root_field(self) -> None:
        # Only the root segment of a path is classified
        self.assertEqual(determine_severity([Change("tags.encryption", "a", "b")]), Severity.MEDIUM)

    def test_result_does_not_depend_on_order(self) -> None:
        changes = [
            Change("instance_type", "t3.micro", "t3.large"),
            Change("encryption", "enabled", "disabled"),
            Change("tags.Team", "a", "b"),
        ]
        results = {determine_severity(p) for p in itertools.permutations(changes)}
        self.assertEqual(results, {Severity.HIGH})


class TestParseSeverity(unittest.TestCase):
    def test_canonical_names(self) -> None:
        self.assertEqual(parse_severity("critical"), Severity.CRITICAL)
        self.assertEqual(parse_severity(" HIGH "), Severity.HIGH)

    def test_legacy_aliases(self) -> None:
        self.assertEqual(parse_severity("info"), Severity.LOW)
        self.assertEqual(parse_severity("warning"), Severity.MEDIUM)

    def test_default_for_empty(self) -> None:
        self.assertEqual(parse_severity("", default=Severity.LOW), Severity.LOW)
        with self.assertRaises(ValueError):
            parse_severity(None)

    def test_unknown_value(self) -> None:
        with self.assertRaises(ValueError) as context:
            parse_severity("urgent")
        self.assertIn("Unknown severity", str(context.exception))


if __name__ == "__main__":
    unittest.main()
