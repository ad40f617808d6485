import os
from pathlib import Path

from flask import Flask, jsonify, request

from escrow_disburse.ingest import JsonRecordSource, load_reference_accounts
from escrow_disburse.service import handle_event

app = Flask(__name__)
app.config["ESCROW_RECORDS_PATH"] = os.environ.get("ESCROW_RECORDS_PATH", "escrow_records.json")
app.config["REFERENCE_ACCOUNTS_PATH"] = os.environ.get("REFERENCE_ACCOUNTS_PATH", "reference_accounts.json")
app.config["REPORT_OUTPUT_PATH"] = os.environ.get("REPORT_OUTPUT_PATH")


def _event_from_request() -> dict:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    user_id = payload.get("userId") or request.args.get("userId")
    return {"userId": user_id} if user_id else {}


@app.post("/disbursements")
def create_disbursement_report():
    try:
        references = load_reference_accounts(Path(app.config["REFERENCE_ACCOUNTS_PATH"]))
    except (OSError, ValueError) as exc:
        app.logger.error("Could not load reference accounts: %s", exc)
        return jsonify({"statusCode": 500, "message": "Internal server error", "error": str(exc)}), 500

    source = JsonRecordSource(Path(app.config["ESCROW_RECORDS_PATH"]))
    response = handle_event(
        _event_from_request(),
        source,
        references,
        output_path=app.config["REPORT_OUTPUT_PATH"],
    )
    return jsonify(response), response["statusCode"]


@app.get("/health")
def health():
    return jsonify({"status": "ok"})


if __name__ == "__main__":
    print("Starting escrow disbursement service...")
    app.run(host="0.0.0.0", port=8710, debug=True)
