"""
Tests for spending analytics.
"""

import unittest
from datetime import date
from decimal import Decimal

from groupledger.analytics import analyze, get_recent_expenses
from groupledger.models import Expense, Group, GroupScope, UserScope

MEMBERS = ["Alice", "Bob", "Carol"]


def make_expense(expense_id, amount, payer, expense_date, category=None):
    return Expense(
        expense_id=expense_id,
        group_id="g1",
        title=f"Expense {expense_id}",
        amount=Decimal(amount),
        payer=payer,
        expense_date=expense_date,
        participants=MEMBERS,
        category=category,
    )


class TestAnalyze(unittest.TestCase):
    """Test suite for the analytics report."""

    def setUp(self):
        self.group = Group("g1", "Trip", MEMBERS)
        self.expenses = [
            make_expense("e1", "90.00", "Alice", date(2025, 8, 2), "Dining & Drinks"),
            make_expense("e2", "30.00", "Bob", date(2025, 8, 1), "Groceries"),
            make_expense("e3", "15.00", "Carol", date(2025, 8, 2)),
            make_expense("e4", "10.00", "Alice", date(2025, 8, 3), "Dining & Drinks"),
        ]

    def test_empty_expenses(self):
        """No expenses yields zeros and no division fault."""
        result = analyze([], GroupScope(self.group))
        self.assertEqual(result.total_spending, Decimal("0"))
        self.assertEqual(result.total_expenses, 0)
        self.assertEqual(result.average_expense, Decimal("0"))
        self.assertEqual(result.category_data, {})
        self.assertEqual(result.recent_expenses, [])
        self.assertEqual(result.settlements, [])
        self.assertEqual(result.category_percentages(), {})

    def test_totals(self):
        """Totals, average and per-person split are rounded to cents."""
        result = analyze(self.expenses, GroupScope(self.group))
        self.assertEqual(result.total_spending, Decimal("145.00"))
        self.assertEqual(result.total_expenses, 4)
        self.assertEqual(result.average_expense, Decimal("36.25"))
        self.assertEqual(result.split_per_person, Decimal("48.33"))

    def test_category_data_first_seen_order(self):
        """Categories keep first-seen order and report their percentage share."""
        result = analyze(self.expenses, GroupScope(self.group))
        self.assertEqual(
            list(result.category_data.items()),
            [
                ("Dining & Drinks", Decimal("100.00")),
                ("Groceries", Decimal("30.00")),
                ("Other", Decimal("15.00")),
            ],
        )
        self.assertEqual(
            result.category_percentages(),
            {
                "Dining & Drinks": Decimal("69.0"),
                "Groceries": Decimal("20.7"),
                "Other": Decimal("10.3"),
            },
        )

    def test_empty_category_kept_apart_from_default(self):
        """An explicit empty category is its own bucket, not folded into Other."""
        expenses = [
            make_expense("e1", "10.00", "Alice", date(2025, 8, 1), ""),
            make_expense("e2", "5.00", "Bob", date(2025, 8, 1)),
        ]
        result = analyze(expenses, UserScope("Alice"))
        self.assertEqual(
            result.category_data, {"": Decimal("10.00"), "Other": Decimal("5.00")}
        )

    def test_daily_spending_sorted_by_date(self):
        """Daily spending is summed per day, oldest first."""
        result = analyze(self.expenses, GroupScope(self.group))
        self.assertEqual(
            list(result.daily_spending.items()),
            [
                (date(2025, 8, 1), Decimal("30.00")),
                (date(2025, 8, 2), Decimal("105.00")),
                (date(2025, 8, 3), Decimal("10.00")),
            ],
        )

    def test_recent_expenses_ties_latest_created_first(self):
        """Same-day expenses list the most recently created first."""
        recent = get_recent_expenses(self.expenses)
        self.assertEqual([e.id for e in recent], ["e4", "e3", "e1", "e2"])

    def test_recent_expenses_limited(self):
        """Only the ten latest expenses are reported."""
        many = [
            make_expense(f"x{i}", "1.00", "Alice", date(2025, 1, i + 1))
            for i in range(15)
        ]
        recent = get_recent_expenses(many)
        self.assertEqual(len(recent), 10)
        self.assertEqual(recent[0].id, "x14")
        self.assertEqual(recent[-1].id, "x5")

    def test_group_scope_embeds_balances_and_settlements(self):
        """Group reports carry balances and at most N - 1 settlements."""
        result = analyze(self.expenses, GroupScope(self.group))
        self.assertEqual(sum(result.balances.values()), Decimal("0"))
        self.assertLessEqual(len(result.settlements), len(MEMBERS) - 1)

    def test_user_scope_reports_spending_only(self):
        """User reports omit balances, settlements and the per-person split."""
        result = analyze(self.expenses, UserScope("Alice"))
        self.assertEqual(result.total_spending, Decimal("145.00"))
        self.assertIsNone(result.split_per_person)
        self.assertIsNone(result.balances)
        self.assertIsNone(result.settlements)

        data = result.to_dict()
        self.assertNotIn("balances", data)
        self.assertNotIn("splitPerPerson", data)

    def test_to_dict(self):
        """The reporting dict uses camelCase keys and plain numbers."""
        data = analyze(self.expenses, GroupScope(self.group)).to_dict()
        self.assertEqual(data["totalSpending"], 145.0)
        self.assertEqual(data["totalExpenses"], 4)
        self.assertEqual(data["averageExpense"], 36.25)
        self.assertEqual(data["splitPerPerson"], 48.33)
        self.assertEqual(data["categoryData"]["Other"], 15.0)
        self.assertEqual(data["dailySpending"]["2025-08-02"], 105.0)
        self.assertEqual(data["recentExpenses"][0]["id"], "e4")
        self.assertEqual(set(data["balances"]), set(MEMBERS))
        for settlement in data["settlements"]:
            self.assertEqual(set(settlement), {"from", "to", "amount"})


if __name__ == "__main__":
    unittest.main()
