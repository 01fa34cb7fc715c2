"""
Backup export/import

The backup artifact is one JSON object:

    {"budget": <BudgetDocument>, "users": [<UserRecord>, ...]}

Export includes the full user directory (password hashes included).
Import only restores the budget document; it replaces the current one
wholesale, there is no merge. Anything that is not a readable artifact
with a valid budget is rejected before state is touched.
"""

import json
from datetime import date
from typing import Any, Optional, Union

from pydantic import ValidationError

from household_budget.models.budget import BudgetDocument
from household_budget.models.user import UserRecord


class BackupFormatError(Exception):
    """The file is not a usable backup."""
    pass


def backup_filename(today: Optional[date] = None) -> str:
    """Download name of an export made on `today`."""
    today = today or date.today()
    return f"budget_backup_{today.isoformat()}.json"


def backup_payload(
    document: BudgetDocument,
    users: list[Union[UserRecord, dict]],
) -> dict:
    """Build the JSON-compatible artifact."""
    return {
        "budget": document.to_storage(),
        "users": [
            user.model_dump(mode="json", by_alias=True) if isinstance(user, UserRecord) else user
            for user in users
        ],
    }


def export_backup(
    document: BudgetDocument,
    users: list[Union[UserRecord, dict]],
) -> str:
    """Serialize the artifact as indented JSON text."""
    return json.dumps(backup_payload(document, users), indent=2, ensure_ascii=False)


def parse_backup(payload: Union[str, bytes, dict[str, Any]]) -> BudgetDocument:
    """
    Read the budget document out of an artifact.

    Args:
        payload: File content as text/bytes, or already decoded JSON

    Raises:
        BackupFormatError: Unreadable JSON, missing "budget" key or an
            invalid budget document
    """
    data: Any = payload
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise BackupFormatError("Backup file is not UTF-8 text")
    if isinstance(data, str):
        try:
            data = json.loads(data)
        except ValueError as e:
            raise BackupFormatError(f"Backup file is not valid JSON: {e}")

    if not isinstance(data, dict) or data.get("budget") is None:
        raise BackupFormatError("Backup file does not contain a budget document")

    try:
        return BudgetDocument.model_validate(data["budget"])
    except ValidationError as e:
        raise BackupFormatError(
            f"Budget document in backup is invalid ({e.error_count()} problems)"
        )
