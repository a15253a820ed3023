"""
Voucher Poster - Submit a batch of vouchers to the ledger system

One failing voucher never aborts the batch: each is posted on its own and
the outcome lands in either results or errors.
"""

from typing import Dict, List

from connectors import TallyError


def format_success_rate(successful: int, total: int) -> str:
    """Percentage string with two decimals, '0.00%' for an empty batch"""
    if not total:
        return '0.00%'
    return f"{successful / total * 100:.2f}%"


def post_vouchers(vouchers: List[Dict], connector, alter: bool = False) -> Dict:
    """
    Post vouchers one by one

    Args:
        vouchers: Vouchers from the entry builder
        connector: Object with create_voucher(voucher) and, for alter=True,
            alter_voucher(voucher), e.g. TallyConnector
        alter: Replace existing vouchers instead of creating new ones

    Returns:
        Dict with 'results', 'errors' and 'summary'
        (total, successful, failed, success_rate)
    """
    submit = connector.alter_voucher if alter else connector.create_voucher
    results = []
    errors = []

    for index, voucher in enumerate(vouchers):
        try:
            response = submit(voucher)
            results.append({
                'index': index,
                'success': True,
                'voucher': voucher,
                'response': response
            })
        except (TallyError, ValueError, KeyError, TypeError) as e:
            print(f"[ERROR] Voucher {index + 1} ({voucher.get('date')} {voucher.get('narration')!r}) failed: {e}",
                  flush=True)
            errors.append({
                'index': index,
                'success': False,
                'voucher': voucher,
                'error': str(e)
            })

    total = len(vouchers)
    action = 'Altered' if alter else 'Posted'
    print(f"[INFO] {action} {len(results)}/{total} vouchers", flush=True)

    return {
        'results': results,
        'errors': errors,
        'summary': {
            'total': total,
            'successful': len(results),
            'failed': len(errors),
            'success_rate': format_success_rate(len(results), total)
        }
    }
