"""Read-only access to groups and expenses in Azure Table Storage."""

import json
import logging
import os
from decimal import Decimal
from typing import Any

from azure.core.credentials import AzureNamedKeyCredential
from azure.core.exceptions import ResourceNotFoundError
from azure.data.tables import TableClient
from azure.identity import DefaultAzureCredential

from ..errors import InternalConsistencyError
from ..expenses import get_expenses
from ..models import Expense, Group, from_minor
from .constants import AZURE_DEV_ACCOUNT_KEY

logger = logging.getLogger(__name__)

GROUPS_PARTITION = "GROUPS"


class DatabaseService:
    """
    Expense and group store backed by Azure Table Storage.

    Groups live in one partition keyed by group id. Expenses are partitioned by
    group id; a deleted expense is simply absent from its partition.
    """

    def __init__(self) -> None:
        self._table_clients: dict[str, TableClient] = {}
        url = os.environ.get("TABLE_SERVICE_URL")
        if not url:
            raise ValueError("TABLE_SERVICE_URL environment variable is not set.")
        self._table_service_url = url

        self._groups_table = os.environ.get("GROUPS_TABLE", "groups")
        self._expenses_table = os.environ.get("EXPENSES_TABLE", "expenses")

    def _get_table_client(self, table_name: str) -> TableClient:
        """Returns a TableClient, cached per instance."""
        if table_name in self._table_clients:
            return self._table_clients[table_name]

        # Azurite well-known credentials
        if self._table_service_url.startswith("http://"):
            client = TableClient(
                endpoint=self._table_service_url,
                table_name=table_name,
                credential=AzureNamedKeyCredential(
                    "devstoreaccount1",
                    AZURE_DEV_ACCOUNT_KEY,
                ),
            )
        else:
            client = TableClient(
                endpoint=self._table_service_url,
                table_name=table_name,
                credential=DefaultAzureCredential(),
            )

        self._table_clients[table_name] = client
        return client

    @staticmethod
    def _entity_to_group(entity: dict[str, Any]) -> Group:
        return Group(
            entity["RowKey"],
            entity.get("Name", ""),
            json.loads(entity.get("Members", "[]")),
        )

    @staticmethod
    def _entity_to_record(entity: dict[str, Any]) -> dict[str, Any]:
        """Maps a table entity onto the record shape understood by to_expense."""
        custom = json.loads(entity.get("CustomAmounts") or "null")
        return {
            "id": entity["RowKey"],
            "groupId": entity["PartitionKey"],
            "title": entity.get("Title"),
            # Stored as an exact minor-unit count, never as a float
            "amount": from_minor(int(entity.get("AmountMinor", 0))),
            "paidBy": entity.get("PaidBy"),
            "date": entity.get("Date"),
            "category": entity.get("Category"),
            "splitMethod": entity.get("SplitMethod"),
            "splitAmong": json.loads(entity.get("SplitAmong", "[]")),
            "customAmounts": (
                {k: Decimal(str(v)) for k, v in custom.items()} if custom else None
            ),
        }

    def get_group(self, group_id: str) -> Group | None:
        """Returns the group roster, or None if the group does not exist."""
        client = self._get_table_client(self._groups_table)
        try:
            entity = client.get_entity(partition_key=GROUPS_PARTITION, row_key=group_id)
        except ResourceNotFoundError:
            return None
        return self._entity_to_group(entity)

    def get_groups_for_member(self, member: str) -> list[Group]:
        """Returns every group whose roster contains the member."""
        client = self._get_table_client(self._groups_table)
        entities = client.query_entities(
            query_filter="PartitionKey eq @pk", parameters={"pk": GROUPS_PARTITION}
        )
        groups = [self._entity_to_group(e) for e in entities]
        return [g for g in groups if member in g]

    def _query_expense_entities(self, group_id: str) -> list[dict[str, Any]]:
        client = self._get_table_client(self._expenses_table)
        return list(
            client.query_entities(
                query_filter="PartitionKey eq @pk", parameters={"pk": group_id}
            )
        )

    def _to_expenses(self, entities: list[dict[str, Any]], scope: str) -> list[Expense]:
        """
        Parses entities in creation order. Ties on CreatedAt fall back to the
        partition and row keys so the order is stable across calls.
        A stored record that cannot be parsed is treated as corruption.
        """
        entities = sorted(
            entities,
            key=lambda e: (e.get("CreatedAt", ""), e["PartitionKey"], e["RowKey"]),
        )
        expenses, errors = get_expenses([self._entity_to_record(e) for e in entities])
        if errors:
            logger.error("Corrupt expense records for %s: %s", scope, errors)
            raise InternalConsistencyError(
                f"{scope} has {len(errors)} unreadable expense record(s)"
            )
        return expenses

    def get_active_expenses(self, group_id: str) -> list[Expense]:
        """Returns the group's current expenses in creation order."""
        return self._to_expenses(
            self._query_expense_entities(group_id), f"Group {group_id}"
        )

    def get_member_expenses(self, member: str) -> list[Expense]:
        """
        Returns the expenses of every group the member belongs to, merged into
        a single creation order across groups.
        """
        entities: list[dict[str, Any]] = []
        for group in self.get_groups_for_member(member):
            entities.extend(self._query_expense_entities(group.id))
        return self._to_expenses(entities, f"Member {member}")
