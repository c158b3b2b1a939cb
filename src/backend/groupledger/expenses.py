"""
Parsing expense records from the store and the API into Expense objects.
"""

from datetime import date, datetime

from .errors import ValidationError
from .models import Expense, SplitMethod, to_decimal

__all__ = ["parse_date", "to_expense", "get_expenses"]

# Supported date formats
DATE_FORMATS = ["%Y-%m-%d", "%m/%d/%Y", "%d/%m/%Y", "%Y/%m/%d"]


def parse_date(date_str: str) -> date:
    """Parse a date string using supported formats, falling back to ISO datetimes."""
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(date_str, fmt).date()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(date_str.replace("Z", "+00:00")).date()
    except ValueError as e:
        raise ValueError(
            f"Date '{date_str}' does not match any supported format."
        ) from e


def _parse_split_method(record: dict) -> SplitMethod:
    value = record.get("splitMethod") or SplitMethod.EQUAL.value
    try:
        return SplitMethod(str(value).strip().lower())
    except ValueError as e:
        raise ValueError(f"Invalid 'splitMethod': {value}") from e


def _parse_participants(record: dict) -> list[str]:
    participants = record.get("splitAmong")
    if not isinstance(participants, list) or not participants:
        raise ValueError("Missing or empty 'splitAmong' field")
    return [str(p).strip() for p in participants]


def _parse_custom_amounts(record: dict, method: SplitMethod) -> dict | None:
    custom = record.get("customAmounts")
    if method != SplitMethod.CUSTOM:
        return None
    if not isinstance(custom, dict):
        raise ValueError("Custom split requires a 'customAmounts' mapping")
    try:
        return {str(k).strip(): to_decimal(v) for k, v in custom.items()}
    except ValidationError as e:
        raise ValueError(f"Invalid 'customAmounts': {e}") from e


def to_expense(record: dict) -> tuple[Expense | None, str | None]:
    """
    Parses a store/API record into an Expense.
    Returns (Expense, None) if successful, or (None, error_message) if not.
    """
    if not isinstance(record, dict):
        return None, "Unexpected error: record is not a valid dictionary"

    try:
        # 1. Title
        title = str(record.get("title", "")).strip()
        if not title:
            return None, "Missing 'title' field"

        # 2. Amount
        if record.get("amount") in (None, ""):
            return None, "Missing 'amount' field"
        try:
            amount = to_decimal(record["amount"])
        except ValidationError:
            return None, f"Invalid 'amount': {record['amount']}"

        # 3. Payer
        payer = str(record.get("paidBy", "")).strip()
        if not payer:
            return None, "Missing 'paidBy' field"

        # 4. Date
        if not record.get("date"):
            return None, "Missing 'date' field"
        expense_date = parse_date(str(record["date"]).strip())

        # 5. Split
        method = _parse_split_method(record)
        participants = _parse_participants(record)
        custom_amounts = _parse_custom_amounts(record, method)

        # 6. Category (Optional)
        category = record.get("category")
        if category is not None:
            category = str(category).strip()

        return (
            Expense(
                expense_id=str(record.get("id", "")),
                group_id=str(record.get("groupId", "")),
                title=title,
                amount=amount,
                payer=payer,
                expense_date=expense_date,
                participants=participants,
                split_method=method,
                custom_amounts=custom_amounts,
                category=category,
            ),
            None,
        )

    except ValueError as e:
        return None, str(e)


def get_expenses(records: list[dict]) -> tuple[list[Expense], list[str]]:
    """
    Parses a list of records into Expenses.
    Returns (List[Expense], List[str]) where the second list contains error messages.
    """
    expenses = []
    errors = []

    for i, record in enumerate(records, start=1):
        expense, error = to_expense(record)
        if expense:
            expenses.append(expense)
        else:
            errors.append(f"Row {i}: {error}")

    return expenses, errors
