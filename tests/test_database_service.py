"""
Tests for the Azure Table Storage group and expense store.
"""

import json
import os
import unittest
from decimal import Decimal
from unittest.mock import MagicMock, patch

from azure.core.credentials import AzureNamedKeyCredential
from azure.core.exceptions import ResourceNotFoundError

from groupledger.errors import InternalConsistencyError
from groupledger.models import SplitMethod
from groupledger.services import DatabaseService


def expense_entity(row_key, created_at, **overrides):
    entity = {
        "PartitionKey": "g1",
        "RowKey": row_key,
        "Title": f"Expense {row_key}",
        "AmountMinor": 10000,
        "PaidBy": "Alice",
        "Date": "2025-08-01",
        "Category": "Groceries",
        "SplitMethod": "equal",
        "SplitAmong": json.dumps(["Alice", "Bob", "Carol"]),
        "CustomAmounts": None,
        "CreatedAt": created_at,
    }
    entity.update(overrides)
    return entity


class TestDatabaseConfig(unittest.TestCase):
    """Test suite for store configuration and client creation."""

    def setUp(self):
        self.original_env = dict(os.environ)

    def tearDown(self):
        os.environ.clear()
        os.environ.update(self.original_env)

    def test_init_missing_url(self):
        """ValueError is raised when TABLE_SERVICE_URL is missing."""
        del os.environ["TABLE_SERVICE_URL"]
        with self.assertRaises(ValueError) as cm:
            DatabaseService()
        self.assertIn("TABLE_SERVICE_URL", str(cm.exception))

    @patch("groupledger.services.database_service.TableClient")
    def test_get_table_client_dev_url(self, mock_table_client):
        """http:// URLs use the Azurite credentials."""
        os.environ["TABLE_SERVICE_URL"] = "http://127.0.0.1:10002/devstoreaccount1"
        service = DatabaseService()
        # pylint: disable=protected-access
        service._get_table_client("groups")

        _, kwargs = mock_table_client.call_args
        self.assertEqual(kwargs["endpoint"], "http://127.0.0.1:10002/devstoreaccount1")
        self.assertIsInstance(kwargs["credential"], AzureNamedKeyCredential)

    @patch("groupledger.services.database_service.DefaultAzureCredential")
    @patch("groupledger.services.database_service.TableClient")
    def test_get_table_client_prod_url(self, mock_table_client, mock_credential):
        """https:// URLs use DefaultAzureCredential."""
        os.environ["TABLE_SERVICE_URL"] = "https://mystorage.table.core.windows.net/"
        mock_cred_instance = MagicMock()
        mock_credential.return_value = mock_cred_instance

        service = DatabaseService()
        # pylint: disable=protected-access
        service._get_table_client("groups")

        _, kwargs = mock_table_client.call_args
        self.assertIs(kwargs["credential"], mock_cred_instance)

    @patch("groupledger.services.database_service.TableClient")
    def test_get_table_client_cached(self, mock_table_client):
        """Table clients are created once per table."""
        service = DatabaseService()
        # pylint: disable=protected-access
        client1 = service._get_table_client("expenses")
        client2 = service._get_table_client("expenses")
        self.assertIs(client1, client2)
        mock_table_client.assert_called_once()


class TestDatabaseQueries(unittest.TestCase):
    """Test suite for group and expense reads."""

    def setUp(self):
        self.service = DatabaseService()
        self.client = MagicMock()
        self.service._get_table_client = MagicMock(return_value=self.client)

    def test_get_group(self):
        """Group entities map onto Group rosters."""
        self.client.get_entity.return_value = {
            "PartitionKey": "GROUPS",
            "RowKey": "g1",
            "Name": "Trip",
            "Members": json.dumps(["Alice", "Bob"]),
        }
        group = self.service.get_group("g1")
        self.assertEqual(group.id, "g1")
        self.assertEqual(group.name, "Trip")
        self.assertEqual(group.members, ("Alice", "Bob"))
        self.client.get_entity.assert_called_with(partition_key="GROUPS", row_key="g1")

    def test_get_group_missing(self):
        """A missing group returns None."""
        self.client.get_entity.side_effect = ResourceNotFoundError("missing")
        self.assertIsNone(self.service.get_group("nope"))

    def test_get_active_expenses_in_creation_order(self):
        """Expenses are returned in CreatedAt order with exact amounts."""
        self.client.query_entities.return_value = [
            expense_entity("e2", "2025-08-02T10:00:00"),
            expense_entity(
                "e1",
                "2025-08-01T10:00:00",
                SplitMethod="custom",
                CustomAmounts=json.dumps({"Alice": "60.00", "Bob": "40.00"}),
                SplitAmong=json.dumps(["Alice", "Bob"]),
            ),
        ]

        expenses = self.service.get_active_expenses("g1")

        self.assertEqual([e.id for e in expenses], ["e1", "e2"])
        self.assertEqual(expenses[0].amount, Decimal("100.00"))
        self.assertEqual(expenses[0].split_method, SplitMethod.CUSTOM)
        self.assertEqual(expenses[0].custom_amounts["Alice"], Decimal("60.00"))
        self.assertEqual(expenses[1].group_id, "g1")
        _, kwargs = self.client.query_entities.call_args
        self.assertEqual(kwargs["parameters"], {"pk": "g1"})

    def test_corrupt_expense_is_inconsistency(self):
        """An unparseable stored record raises and is logged."""
        self.client.query_entities.return_value = [
            expense_entity("e1", "2025-08-01T10:00:00", SplitAmong="[]"),
        ]
        with self.assertLogs("groupledger.services.database_service", level="ERROR"):
            with self.assertRaises(InternalConsistencyError):
                self.service.get_active_expenses("g1")

    def test_get_member_expenses(self):
        """Only groups containing the member are queried for expenses."""
        groups = [
            {
                "PartitionKey": "GROUPS",
                "RowKey": "g1",
                "Name": "A",
                "Members": '["Alice", "Bob"]',
            },
            {
                "PartitionKey": "GROUPS",
                "RowKey": "g2",
                "Name": "B",
                "Members": '["Bob"]',
            },
        ]
        self.client.query_entities.side_effect = [
            groups,
            [expense_entity("e1", "2025-08-01T10:00:00")],
        ]

        expenses = self.service.get_member_expenses("Alice")

        self.assertEqual([e.id for e in expenses], ["e1"])
        self.assertEqual(self.client.query_entities.call_count, 2)

    def test_get_member_expenses_interleaved_creation_order(self):
        """Expenses from different groups are merged by creation time."""
        groups = [
            {
                "PartitionKey": "GROUPS",
                "RowKey": "g1",
                "Name": "A",
                "Members": '["Alice", "Bob", "Carol"]',
            },
            {
                "PartitionKey": "GROUPS",
                "RowKey": "g2",
                "Name": "B",
                "Members": '["Alice", "Bob", "Carol"]',
            },
        ]
        self.client.query_entities.side_effect = [
            groups,
            [
                expense_entity("e1", "2025-08-01T10:00:00"),
                expense_entity("e3", "2025-08-01T12:00:00"),
            ],
            [
                expense_entity("e2", "2025-08-01T11:00:00", PartitionKey="g2"),
                expense_entity("e4", "2025-08-01T12:00:00", PartitionKey="g2"),
            ],
        ]

        expenses = self.service.get_member_expenses("Alice")

        self.assertEqual([e.id for e in expenses], ["e1", "e2", "e3", "e4"])
        self.assertEqual([e.group_id for e in expenses], ["g1", "g2", "g1", "g2"])


if __name__ == "__main__":
    unittest.main()
