"""
Output Generator - Write vouchers to files for review before posting
Creates a formatted Excel workbook (one row per ledger leg) and a JSON dump
"""

import json
import os
from datetime import datetime
from typing import Dict, List, Optional

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils.dataframe import dataframe_to_rows

from config import OUTPUT_DIR

from .entry_builder import DEBIT_LEG, SOURCE_SUSPENSE, summarize_vouchers

HEADER_FILL = PatternFill(start_color='4472C4', end_color='4472C4', fill_type='solid')
REVIEW_FILL = PatternFill(start_color='FFFF00', end_color='FFFF00', fill_type='solid')


class OutputGenerator:
    """Generate review files for a voucher batch"""

    def __init__(self, output_dir: Optional[str] = None):
        self.output_dir = output_dir or OUTPUT_DIR
        os.makedirs(self.output_dir, exist_ok=True)
        self.generated_files = []

    def generate_all(self, vouchers: List[Dict], timestamp: Optional[str] = None) -> Dict:
        """Write both the workbook and the JSON file, returns {'excel', 'json'} paths"""
        if timestamp is None:
            timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')

        return {
            'excel': self.generate_voucher_workbook(vouchers, timestamp),
            'json': self.generate_json(vouchers, timestamp)
        }

    def generate_voucher_workbook(self, vouchers: List[Dict], timestamp: str) -> str:
        """Vouchers sheet with one row per ledger leg; suspense rows highlighted"""
        filepath = os.path.join(self.output_dir, f"Vouchers_{timestamp}.xlsx")

        rows = []
        for number, voucher in enumerate(vouchers, 1):
            metadata = voucher.get('metadata') or {}
            for entry in voucher['ledger_entries']:
                is_debit = entry['is_deemed_positive'] == DEBIT_LEG
                rows.append({
                    'Voucher #': number,
                    'Date': voucher.get('date', ''),
                    'Voucher Type': voucher['voucher_type'],
                    'Ledger': entry['ledger_name'],
                    'Debit': entry['amount'] if is_debit else '',
                    'Credit': '' if is_debit else entry['amount'],
                    'Narration': voucher.get('narration', ''),
                    'Category': metadata.get('category') or '',
                    'Needs Review': 'Yes' if metadata.get('source') == SOURCE_SUSPENSE else ''
                })

        columns = ['Voucher #', 'Date', 'Voucher Type', 'Ledger', 'Debit', 'Credit',
                   'Narration', 'Category', 'Needs Review']
        df = pd.DataFrame(rows, columns=columns)

        wb = Workbook()
        ws = wb.active
        ws.title = 'Vouchers'
        self._write_sheet(ws, df)
        self._write_summary(wb.create_sheet('Summary'), vouchers)

        wb.save(filepath)
        self.generated_files.append(filepath)
        print(f"[INFO] Wrote {len(vouchers)} vouchers to {filepath}", flush=True)
        return filepath

    def generate_json(self, vouchers: List[Dict], timestamp: str) -> str:
        filepath = os.path.join(self.output_dir, f"Vouchers_{timestamp}.json")
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(vouchers, f, indent=2, default=str)
        self.generated_files.append(filepath)
        return filepath

    def _write_sheet(self, ws, df):
        """Header styling, review highlighting, column widths, filter and frozen header"""
        for r_idx, row in enumerate(dataframe_to_rows(df, index=False, header=True), 1):
            for c_idx, value in enumerate(row, 1):
                cell = ws.cell(row=r_idx, column=c_idx, value=value)
                if r_idx == 1:
                    cell.font = Font(bold=True, color='FFFFFF')
                    cell.fill = HEADER_FILL
                    cell.alignment = Alignment(horizontal='center')

            if r_idx > 1 and row[-1] == 'Yes':
                for col in range(1, len(row) + 1):
                    ws.cell(row=r_idx, column=col).fill = REVIEW_FILL

        for column in ws.columns:
            max_length = max(len(str(cell.value)) if cell.value is not None else 0 for cell in column)
            ws.column_dimensions[column[0].column_letter].width = min(max_length + 2, 50)

        ws.auto_filter.ref = ws.dimensions
        ws.freeze_panes = 'A2'

    def _write_summary(self, ws, vouchers: List[Dict]):
        summary = summarize_vouchers(vouchers)

        ws['A1'] = "Bank Statement Vouchers - Summary"
        ws['A1'].font = Font(bold=True, size=14)
        ws['A2'] = f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}"

        rows = [
            ("Total Vouchers", len(vouchers)),
            ("Payments", summary['payments']),
            ("Receipts", summary['receipts']),
            ("Journals", summary['journals']),
            ("Total Amount", f"{summary['total_amount']:,.2f}"),
        ]
        for offset, (label, value) in enumerate(rows):
            ws[f'A{4 + offset}'] = label
            ws[f'B{4 + offset}'] = value

        ws.column_dimensions['A'].width = 30
        ws.column_dimensions['B'].width = 20

    def get_generated_files(self) -> List[str]:
        return self.generated_files
