"""
Bank Statement Voucher Tool - Flask JSON API
Upload bank statements, preview the generated vouchers and post them to Tally

Every response is {'success': bool, 'data': ...} or {'success': False, 'error': ...}
"""

import os
from datetime import date

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException
from werkzeug.utils import secure_filename

from config import (DEFAULT_BANK_LEDGER, DEFAULT_EXPENSE_LEDGER, DEFAULT_INCOME_LEDGER,
                    DEFAULT_SUSPENSE_LEDGER, MAX_UPLOAD_SIZE, SUPPORTED_BANK_EXTENSIONS)
from connectors import TallyConnector, TallyError
from parsers import NoTransactionsFoundError, UniversalParser, get_supported_banks
from processors import (EntryBuilder, build_reassigned_voucher, build_transfer_voucher, format_success_rate,
                        post_vouchers, summarize_vouchers, validate_voucher_balance)

app = Flask(__name__)
app.config['MAX_CONTENT_LENGTH'] = MAX_UPLOAD_SIZE

UPLOAD_FIELD = 'bankStatement'


class ApiError(Exception):
    """Request rejected before any processing"""

    def __init__(self, message: str, status: int = 400):
        super().__init__(message)
        self.status = status


def get_tally_connector() -> TallyConnector:
    """Connector for the configured Tally instance"""
    return TallyConnector()


def allowed_file(filename):
    return os.path.splitext(filename)[1].lower() in SUPPORTED_BANK_EXTENSIONS


def _error(message, status):
    return jsonify({'success': False, 'error': message}), status


def _form_flag(name, default=True):
    value = request.form.get(name)
    if value is None or value == '':
        return default
    return value.strip().lower() in ('true', '1', 'yes', 'on')


def _json_body() -> dict:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ApiError('Request body must be a JSON object')
    return body


# ============ ERROR HANDLERS ============

@app.errorhandler(ApiError)
def handle_api_error(e):
    return _error(str(e), e.status)


@app.errorhandler(NoTransactionsFoundError)
def handle_no_transactions(e):
    return _error(str(e), 422)


@app.errorhandler(ValueError)
def handle_value_error(e):
    # StatementError subclasses and voucher validation errors
    print(f"[WARNING] Rejected request: {e}", flush=True)
    return _error(str(e), 400)


@app.errorhandler(TallyError)
def handle_tally_error(e):
    print(f"[ERROR] Tally request failed: {e}", flush=True)
    return _error(str(e), 502)


@app.errorhandler(HTTPException)
def handle_http_error(e):
    # 413 from MAX_CONTENT_LENGTH, 404/405 routing errors
    return _error(e.description, e.code)


# ============ BANK STATEMENT ============

def _read_upload():
    """Return (filename, extension, bytes) of the uploaded statement"""
    file = request.files.get(UPLOAD_FIELD)
    if file is None or file.filename == '':
        raise ApiError('No file uploaded')

    # The extension comes from the raw name; secure_filename drops non-ASCII stems
    if not allowed_file(file.filename):
        raise ApiError(f"Unsupported file format. Supported formats: {', '.join(SUPPORTED_BANK_EXTENSIONS)}")

    extension = os.path.splitext(file.filename)[1].lower().lstrip('.')
    filename = secure_filename(file.filename)
    if not filename.lower().endswith(f".{extension}"):
        filename = f"statement.{extension}"
    return filename, extension, file.read()


def _parse_upload():
    """Parse the uploaded statement, returns (filename, extension, parser, transactions)"""
    filename, extension, buffer = _read_upload()
    parser = UniversalParser()
    transactions = parser.parse(buffer, extension, request.form.get('bankType') or 'generic')
    return filename, extension, parser, transactions


def _build_vouchers():
    """Parse the upload and build vouchers from the form settings"""
    company_name = (request.form.get('companyName') or '').strip()
    if not company_name:
        raise ApiError('Company name is required')

    filename, extension, parser, transactions = _parse_upload()

    builder = EntryBuilder(
        company_name,
        bank_ledger_name=request.form.get('bankLedgerName') or DEFAULT_BANK_LEDGER,
        default_expense_ledger=request.form.get('defaultExpenseLedger') or DEFAULT_EXPENSE_LEDGER,
        default_income_ledger=request.form.get('defaultIncomeLedger') or DEFAULT_INCOME_LEDGER,
        auto_categorize=_form_flag('autoCategorize'),
        suspense_ledger=request.form.get('suspenseLedger') or DEFAULT_SUSPENSE_LEDGER
    )
    # PDF rows come from a heuristic parser, so they are parked for review
    suspense = extension == 'pdf'
    vouchers = builder.build_batch(transactions, suspense=suspense)

    return {
        'fileName': filename,
        'mode': 'suspense' if suspense else 'categorized',
        'parser': parser,
        'transactions': transactions,
        'vouchers': vouchers
    }


@app.route('/api/bank-statement/upload', methods=['POST'])
def upload_statement():
    """Parse a statement and return the canonical transactions"""
    filename, _, parser, transactions = _parse_upload()
    return jsonify({
        'success': True,
        'data': {
            'fileName': filename,
            'transactions': transactions,
            'summary': parser.get_summary()
        }
    })


@app.route('/api/bank-statement/preview', methods=['POST'])
def preview_statement():
    """Parse a statement and return the vouchers that import would post"""
    built = _build_vouchers()
    return jsonify({
        'success': True,
        'data': {
            'fileName': built['fileName'],
            'mode': built['mode'],
            'totalTransactions': len(built['transactions']),
            'vouchers': built['vouchers'],
            'summary': summarize_vouchers(built['vouchers'])
        }
    })


@app.route('/api/bank-statement/import', methods=['POST'])
def import_statement():
    """Parse a statement, build vouchers and post them to Tally"""
    built = _build_vouchers()
    posting = post_vouchers(built['vouchers'], get_tally_connector())
    return jsonify({
        'success': True,
        'data': {
            'fileName': built['fileName'],
            'mode': built['mode'],
            'totalTransactions': len(built['transactions']),
            **posting
        }
    })


@app.route('/api/bank-statement/supported-banks', methods=['GET'])
def supported_banks():
    return jsonify({
        'success': True,
        'data': {
            'banks': get_supported_banks(),
            'formats': [ext.lstrip('.').upper() for ext in SUPPORTED_BANK_EXTENSIONS]
        }
    })


# ============ TALLY ============

def _voucher_from_json(body: dict, company_name=None) -> dict:
    """Map a camelCase voucher payload to the voucher dict the connector posts"""
    company_name = company_name or body.get('companyName')
    entries = body.get('ledgerEntries')

    if not body.get('voucherType') or not body.get('date') or not entries or not company_name:
        raise ApiError('Voucher type, date, ledger entries, and company name are required')
    if not isinstance(entries, list) or len(entries) < 2:
        raise ApiError('At least 2 ledger entries are required for a voucher')

    try:
        ledger_entries = [{
            'ledger_name': entry['ledgerName'],
            'amount': round(float(entry['amount']), 2),
            'is_deemed_positive': entry.get('isDeemedPositive') or 'No'
        } for entry in entries]
    except (KeyError, TypeError, ValueError) as e:
        raise ApiError(f"Invalid ledger entry: {e}") from e

    voucher = {
        'voucher_type': body['voucherType'],
        'date': str(body['date']),
        'narration': body.get('narration') or '',
        'company_name': company_name,
        'voucher_number': body.get('voucherNumber'),
        'ledger_entries': ledger_entries
    }

    if not validate_voucher_balance(voucher)['is_balanced']:
        raise ApiError('Debit and credit ledger entries do not balance')
    return voucher


@app.route('/api/tally/test-connection', methods=['GET'])
def tally_test_connection():
    return jsonify(get_tally_connector().test_connection())


@app.route('/api/tally/companies', methods=['GET'])
def tally_companies():
    return jsonify({'success': True, 'data': get_tally_connector().get_companies()})


@app.route('/api/tally/ledgers', methods=['POST'])
def tally_ledgers():
    body = _json_body()
    if not body.get('companyName'):
        raise ApiError('Company name is required')
    return jsonify({'success': True, 'data': get_tally_connector().get_ledgers(body['companyName'])})


@app.route('/api/tally/create-ledger', methods=['POST'])
def tally_create_ledger():
    body = _json_body()
    if not body.get('ledgerName') or not body.get('parentGroup') or not body.get('companyName'):
        raise ApiError('Ledger name, parent group, and company name are required')

    result = get_tally_connector().create_ledger(
        body['ledgerName'], body['parentGroup'], body['companyName'],
        body.get('openingBalance') or 0
    )
    return jsonify({'success': True, 'data': result, 'message': 'Ledger created successfully'})


@app.route('/api/tally/create-voucher', methods=['POST'])
def tally_create_voucher():
    voucher = _voucher_from_json(_json_body())
    result = get_tally_connector().create_voucher(voucher)
    return jsonify({'success': True, 'data': result, 'message': 'Voucher created successfully'})


@app.route('/api/tally/vouchers', methods=['POST'])
def tally_vouchers():
    body = _json_body()
    if not body.get('companyName') or not body.get('fromDate') or not body.get('toDate'):
        raise ApiError('Company name, from date, and to date are required')

    result = get_tally_connector().get_vouchers(body['companyName'], body['fromDate'], body['toDate'])
    return jsonify({'success': True, 'data': result})


@app.route('/api/tally/bulk-vouchers', methods=['POST'])
def tally_bulk_vouchers():
    payloads = _json_body().get('vouchers')
    if not isinstance(payloads, list) or not payloads:
        raise ApiError('Vouchers array is required')

    vouchers = [_voucher_from_json(payload) for payload in payloads]
    return jsonify({'success': True, 'data': post_vouchers(vouchers, get_tally_connector())})


# ============ LEDGER TRANSFER ============

@app.route('/api/ledger-transfer/create-transfer-entry', methods=['POST'])
def create_transfer_entry():
    """Post one Journal voucher moving an amount between two ledgers"""
    body = _json_body()
    required = ('companyName', 'fromLedger', 'toLedger', 'amount', 'date')
    if any(not body.get(field) for field in required):
        raise ApiError('All fields are required')

    voucher = build_transfer_voucher(
        body['companyName'], body['fromLedger'], body['toLedger'],
        body['amount'], str(body['date']), body.get('narration')
    )
    result = get_tally_connector().create_voucher(voucher)
    return jsonify({'success': True, 'data': result, 'message': 'Transfer entry created successfully'})


def _merge_batch(posting, positions, invalid, total):
    """Map batch positions back to request indices and fold in rejected items"""
    for item in posting['results'] + posting['errors']:
        item['index'] = positions[item['index']]

    errors = sorted(posting['errors'] + invalid, key=lambda item: item['index'])
    successful = len(posting['results'])
    summary = {
        'total': total,
        'successful': successful,
        'failed': len(errors),
        'success_rate': format_success_rate(successful, total)
    }
    return posting['results'], errors, summary


@app.route('/api/ledger-transfer/bulk-transfer', methods=['POST'])
def bulk_transfer():
    """Post many transfers; a bad transfer is reported, not fatal"""
    body = _json_body()
    company_name = body.get('companyName')
    transfers = body.get('transfers')
    if not company_name or not isinstance(transfers, list) or not transfers:
        raise ApiError('Company name and transfers array are required')

    positions = []
    vouchers = []
    invalid = []
    for index, transfer in enumerate(transfers):
        try:
            vouchers.append(build_transfer_voucher(
                company_name, transfer.get('fromLedger'), transfer.get('toLedger'),
                transfer.get('amount'), str(transfer.get('date') or ''), transfer.get('narration')
            ))
            positions.append(index)
        except (AttributeError, ValueError) as e:
            invalid.append({'index': index, 'success': False, 'transfer': transfer, 'error': str(e)})

    posting = post_vouchers(vouchers, get_tally_connector())
    results, errors, summary = _merge_batch(posting, positions, invalid, len(transfers))
    for item in results + errors:
        item['transfer'] = transfers[item['index']]

    return jsonify({
        'success': True,
        'data': {'results': results, 'errors': errors, 'summary': summary}
    })


def _entry_to_json(entry: dict) -> dict:
    return {
        'masterID': entry['master_id'],
        'guid': entry['guid'],
        'date': entry['date'],
        'voucherType': entry['voucher_type'],
        'voucherNumber': entry['voucher_number'],
        'narration': entry['narration'],
        'amount': entry['amount'],
        'isDeemedPositive': entry['is_deemed_positive'],
        'allLedgerEntries': [{
            'ledgerName': line['ledger_name'],
            'amount': line['amount'],
            'isDeemedPositive': line['is_deemed_positive']
        } for line in entry['ledger_entries']]
    }


def _entry_from_json(payload: dict) -> dict:
    return {
        'master_id': str(payload.get('masterID') or ''),
        'guid': str(payload.get('guid') or ''),
        'date': str(payload.get('date') or ''),
        'voucher_type': payload['voucherType'],
        'voucher_number': str(payload.get('voucherNumber') or ''),
        'narration': payload.get('narration') or '',
        'ledger_entries': [{
            'ledger_name': line['ledgerName'],
            'amount': float(line['amount']),
            'is_deemed_positive': line.get('isDeemedPositive') or 'No'
        } for line in payload.get('allLedgerEntries') or []]
    }


@app.route('/api/ledger-transfer/entries', methods=['POST'])
def ledger_entries():
    """Vouchers posting to one ledger, defaulting to the current calendar year"""
    body = _json_body()
    company_name = body.get('companyName')
    ledger_name = body.get('ledgerName')
    if not company_name or not ledger_name:
        raise ApiError('Company name and ledger name are required')

    year = date.today().year
    from_date = str(body.get('fromDate') or f"{year}0101")
    to_date = str(body.get('toDate') or f"{year}1231")

    entries = get_tally_connector().get_ledger_entries(company_name, ledger_name, from_date, to_date)
    return jsonify({
        'success': True,
        'data': {
            'ledgerName': ledger_name,
            'fromDate': from_date,
            'toDate': to_date,
            'count': len(entries),
            'entries': [_entry_to_json(entry) for entry in entries]
        }
    })


@app.route('/api/ledger-transfer/transfer-entries', methods=['POST'])
def transfer_entries():
    """Re-import selected vouchers with fromLedger replaced by toLedger"""
    body = _json_body()
    company_name = body.get('companyName')
    from_ledger = body.get('fromLedger')
    to_ledger = body.get('toLedger')
    selected = body.get('selectedEntries')
    if not company_name or not from_ledger or not to_ledger or not isinstance(selected, list) or not selected:
        raise ApiError('Company name, from ledger, to ledger, and selected entries are required')
    if str(from_ledger).strip().lower() == str(to_ledger).strip().lower():
        raise ApiError('From ledger and to ledger cannot be the same')

    positions = []
    vouchers = []
    invalid = []
    for index, payload in enumerate(selected):
        try:
            vouchers.append(build_reassigned_voucher(
                company_name, _entry_from_json(payload), from_ledger, to_ledger
            ))
            positions.append(index)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            invalid.append({'index': index, 'success': False, 'error': str(e)})

    posting = post_vouchers(vouchers, get_tally_connector(), alter=True)
    results, errors, summary = _merge_batch(posting, positions, invalid, len(selected))
    for item in results + errors:
        payload = selected[item['index']]
        if isinstance(payload, dict):
            item['voucherNumber'] = payload.get('voucherNumber') or ''
            item['date'] = payload.get('date') or ''

    return jsonify({
        'success': True,
        'data': {
            'fromLedger': from_ledger,
            'toLedger': to_ledger,
            'results': results,
            'errors': errors,
            'summary': summary
        }
    })


if __name__ == '__main__':
    from config import FLASK_DEBUG, FLASK_HOST, FLASK_PORT

    print("=" * 70)
    print("  Bank Statement Voucher Tool - API")
    print("=" * 70)
    print(f"  API Endpoint:  http://{FLASK_HOST}:{FLASK_PORT}/api/")
    print("-" * 70)
    print("    POST /api/bank-statement/upload         - Parse a statement")
    print("    POST /api/bank-statement/preview        - Preview vouchers")
    print("    POST /api/bank-statement/import         - Post vouchers to Tally")
    print("    GET  /api/bank-statement/supported-banks")
    print("    GET  /api/tally/test-connection")
    print("    POST /api/ledger-transfer/create-transfer-entry")
    print("    POST /api/ledger-transfer/entries          - Vouchers posting to a ledger")
    print("    POST /api/ledger-transfer/transfer-entries - Move vouchers to another ledger")
    print("=" * 70)
    app.run(debug=FLASK_DEBUG, host=FLASK_HOST, port=FLASK_PORT)
