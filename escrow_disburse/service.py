"""Report pipeline: fetch escrow records, allocate, write the workbook.

``handle_event`` is the entry point shared by the CLI ``report`` command and
the web app. It never raises; failures are returned as a status dictionary.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from .data_models import ReferenceAccounts
from .engine import compute_account_disbursements
from .excel_export import ReportResult, generate_disbursements_excel
from .ingest import RecordSource

logger = logging.getLogger(__name__)

USER_ID_ENV = "USER_ID"


def run_disbursement_report(
    user_id: str,
    source: RecordSource,
    reference_accounts: Dict[str, ReferenceAccounts],
    output_path: Optional[Union[str, Path]] = None,
) -> ReportResult:
    records = source.fetch(user_id)
    disbursements = compute_account_disbursements(records, reference_accounts)
    return generate_disbursements_excel(disbursements, output_path=output_path)


def handle_event(
    event: Optional[Mapping[str, Any]],
    source: RecordSource,
    reference_accounts: Dict[str, ReferenceAccounts],
    output_path: Optional[Union[str, Path]] = None,
) -> Dict[str, Any]:
    """Run the report for the user named in ``event``.

    The user id comes from ``event["userId"]`` and falls back to the
    ``USER_ID`` environment variable.

    Returns
    -------
    dict
        ``statusCode`` 200 with the report details, 400 when no user id is
        available, 500 when anything in the pipeline failed.
    """
    user_id = (event or {}).get("userId") or os.environ.get(USER_ID_ENV)
    if not user_id:
        logger.error("No userId supplied in event or %s env var.", USER_ID_ENV)
        return {"statusCode": 400, "message": "Missing userId"}

    try:
        result = run_disbursement_report(str(user_id), source, reference_accounts, output_path)
    except Exception as exc:
        logger.exception("Disbursement report failed for user %s", user_id)
        return {"statusCode": 500, "message": "Internal server error", "error": str(exc)}

    return {
        "statusCode": 200,
        "message": "Successfully created disbursement file",
        "result": result.to_dict(),
    }
