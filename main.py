"""
Bank Statement Voucher Tool - Main Entry Point

Command Line Interface for turning bank statements into Tally vouchers
"""

import argparse
import json
import os
import sys
from typing import Dict, Optional

from config import (DEFAULT_BANK_LEDGER, DEFAULT_EXPENSE_LEDGER, DEFAULT_INCOME_LEDGER,
                    DEFAULT_SUSPENSE_LEDGER, SUPPORTED_BANK_EXTENSIONS, TALLY_HOST, TALLY_PORT)
from connectors import TallyConnector
from parsers import StatementError, UniversalParser, get_supported_banks
from processors import EntryBuilder, OutputGenerator, post_vouchers, summarize_vouchers


def print_banner():
    """Print application banner"""
    print("""
==============================================================================
                       BANK STATEMENT VOUCHER TOOL
    Bank statements (CSV, Excel, JSON, PDF) -> double-entry Tally vouchers
==============================================================================
    """)


def process_bank_statement(file_path: str, company_name: str, bank_code: str = 'generic',
                           bank_ledger_name: str = DEFAULT_BANK_LEDGER,
                           default_expense_ledger: str = DEFAULT_EXPENSE_LEDGER,
                           default_income_ledger: str = DEFAULT_INCOME_LEDGER,
                           auto_categorize: bool = True,
                           suspense: bool = False,
                           suspense_ledger: str = DEFAULT_SUSPENSE_LEDGER,
                           output_path: Optional[str] = None,
                           excel_dir: Optional[str] = None,
                           connector: Optional[TallyConnector] = None,
                           verbose: bool = True) -> Dict:
    """
    Process a bank statement file end-to-end

    Args:
        file_path: Path to bank statement file (CSV, Excel, JSON, PDF)
        company_name: Tally company the vouchers belong to
        bank_code: Bank layout for tabular files
        suspense: Post every voucher against the suspense ledger (always on for PDF)
        output_path: Write the vouchers as JSON here
        excel_dir: Write a review workbook into this directory
        connector: Post the vouchers through this connector
        verbose: Print progress messages

    Returns:
        Dictionary with transactions, vouchers, summaries and posting results
    """
    extension = os.path.splitext(file_path)[1].lower().lstrip('.')

    if verbose:
        print(f"\n[1/3] Parsing bank statement: {os.path.basename(file_path)}")

    with open(file_path, 'rb') as f:
        buffer = f.read()

    parser = UniversalParser(progress_callback=_print_ocr_progress if verbose else None)
    transactions = parser.parse(buffer, extension, bank_code)
    parse_summary = parser.get_summary()

    if verbose:
        print(f"      Found {len(transactions)} transactions")
        print(f"      Total Debits:  {parse_summary['total_debit']:,.2f}")
        print(f"      Total Credits: {parse_summary['total_credit']:,.2f}")

    use_suspense = suspense or extension == 'pdf'
    if verbose:
        mode = f"suspense ({suspense_ledger})" if use_suspense else "categorized"
        print(f"\n[2/3] Building vouchers, {mode}...")

    builder = EntryBuilder(
        company_name,
        bank_ledger_name=bank_ledger_name,
        default_expense_ledger=default_expense_ledger,
        default_income_ledger=default_income_ledger,
        auto_categorize=auto_categorize,
        suspense_ledger=suspense_ledger
    )
    vouchers = builder.build_batch(transactions, suspense=use_suspense)
    voucher_summary = summarize_vouchers(vouchers)

    if verbose:
        print(f"      Payments: {voucher_summary['payments']}, Receipts: {voucher_summary['receipts']}")

    results = {
        'status': 'success',
        'input_file': file_path,
        'mode': 'suspense' if use_suspense else 'categorized',
        'transactions': transactions,
        'vouchers': vouchers,
        'parse_summary': parse_summary,
        'voucher_summary': voucher_summary,
        'generated_files': {},
        'posting': None
    }

    if output_path:
        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(vouchers, f, indent=2, default=str)
        results['generated_files']['json'] = output_path

    if excel_dir:
        generator = OutputGenerator(output_dir=excel_dir)
        results['generated_files'].update(generator.generate_all(vouchers))

    if connector is not None:
        if verbose:
            print(f"\n[3/3] Posting {len(vouchers)} vouchers to Tally at {connector.url}")
        results['posting'] = post_vouchers(vouchers, connector)
        if results['posting']['errors']:
            results['status'] = 'partial'
    elif verbose:
        print("\n[3/3] Skipping Tally posting (use --post)")

    return results


def _print_ocr_progress(page, total):
    print(f"      OCR page {page}/{total}", flush=True)


def main(argv=None):
    """Main CLI entry point"""
    parser = argparse.ArgumentParser(
        description='Bank Statement Voucher Tool - Convert bank statements into Tally vouchers',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py statement.csv --company "Acme Ltd"
  python main.py statement.xlsx --company "Acme Ltd" --bank hdfc --output vouchers.json
  python main.py scanned.pdf --company "Acme Ltd" --post
  python main.py --web
        """
    )

    bank_codes = [bank['code'] for bank in get_supported_banks()]

    parser.add_argument('file', nargs='?', help='Bank statement file (CSV, Excel, JSON or PDF)')
    parser.add_argument('--company', '-c', help='Tally company name')
    parser.add_argument('--bank', '-b', choices=bank_codes, default='generic', help='Bank layout (default: generic)')
    parser.add_argument('--bank-ledger', default=DEFAULT_BANK_LEDGER, help='Bank ledger name')
    parser.add_argument('--expense-ledger', default=DEFAULT_EXPENSE_LEDGER, help='Default expense ledger')
    parser.add_argument('--income-ledger', default=DEFAULT_INCOME_LEDGER, help='Default income ledger')
    parser.add_argument('--no-categorize', action='store_true', help='Disable keyword categorization')
    parser.add_argument('--suspense', action='store_true', help='Post everything against the suspense ledger')
    parser.add_argument('--suspense-ledger', default=DEFAULT_SUSPENSE_LEDGER, help='Suspense ledger name')
    parser.add_argument('--output', '-o', help='Write vouchers to this JSON file')
    parser.add_argument('--excel', help='Write a review workbook into this directory')
    parser.add_argument('--post', action='store_true', help='Post vouchers to Tally')
    parser.add_argument('--tally-host', default=TALLY_HOST, help='Tally host')
    parser.add_argument('--tally-port', type=int, default=TALLY_PORT, help='Tally port')
    parser.add_argument('--web', '-w', action='store_true', help='Launch the API server')

    args = parser.parse_args(argv)

    print_banner()

    if args.web:
        from config import FLASK_DEBUG, FLASK_HOST, FLASK_PORT
        print(f"Starting API server on http://{FLASK_HOST}:{FLASK_PORT}")
        from app import app
        app.run(debug=FLASK_DEBUG, host=FLASK_HOST, port=FLASK_PORT)
        return 0

    if not args.file:
        parser.print_help()
        print("\nError: Please provide a bank statement file or use --web for the API server")
        return 1

    if not args.company:
        print("\nError: --company is required")
        return 1

    if not os.path.exists(args.file):
        print(f"\nError: File not found: {args.file}")
        return 1

    ext = os.path.splitext(args.file)[1].lower()
    if ext not in SUPPORTED_BANK_EXTENSIONS:
        print(f"\nError: Unsupported file format: {ext}")
        print(f"   Supported formats: {', '.join(SUPPORTED_BANK_EXTENSIONS)}")
        return 1

    connector = TallyConnector(host=args.tally_host, port=args.tally_port) if args.post else None

    try:
        results = process_bank_statement(
            file_path=args.file,
            company_name=args.company,
            bank_code=args.bank,
            bank_ledger_name=args.bank_ledger,
            default_expense_ledger=args.expense_ledger,
            default_income_ledger=args.income_ledger,
            auto_categorize=not args.no_categorize,
            suspense=args.suspense,
            suspense_ledger=args.suspense_ledger,
            output_path=args.output,
            excel_dir=args.excel,
            connector=connector
        )
    except StatementError as e:
        print(f"\nError: {e}")
        return 1

    print(f"\n{'=' * 70}")
    print("PROCESSING COMPLETE")
    print(f"{'=' * 70}")
    print(f"Vouchers: {len(results['vouchers'])} ({results['mode']})")
    for name, path in results['generated_files'].items():
        print(f"  {name}: {path}")
    if results['posting']:
        summary = results['posting']['summary']
        print(f"Posted: {summary['successful']}/{summary['total']} ({summary['success_rate']})")

    return 0 if results['status'] == 'success' else 2


if __name__ == "__main__":
    sys.exit(main())
