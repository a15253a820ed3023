"""
Processors Package - Voucher building, export and posting
"""

from .entry_builder import (EntryBuilder, build_reassigned_voucher, build_transfer_voucher,
                            convert_to_suspense_vouchers, convert_to_vouchers, summarize_vouchers,
                            validate_voucher_balance)
from .output_generator import OutputGenerator
from .voucher_poster import format_success_rate, post_vouchers

__all__ = ['EntryBuilder', 'convert_to_vouchers', 'convert_to_suspense_vouchers',
           'build_transfer_voucher', 'build_reassigned_voucher', 'validate_voucher_balance',
           'summarize_vouchers', 'OutputGenerator', 'post_vouchers', 'format_success_rate']
