"""
Tally Connector - XML-over-HTTP client for the Tally ledger system

Tally listens on a single endpoint (default http://localhost:9000/) and
takes an XML ENVELOPE describing an Export (read) or Import (write)
request. Every call here raises TallyError on transport, HTTP or import
failures.
"""

import xml.etree.ElementTree as ET
from typing import Dict, List, Optional

import requests

from config import TALLY_HOST, TALLY_PORT, TALLY_TIMEOUT

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'


class TallyError(Exception):
    """Tally could not be reached or rejected the request"""


# =========================================================================
# ENVELOPE BUILDING
# =========================================================================

def _envelope(tally_request: str, request_id: str, static_variables: Dict[str, str]):
    """Build the ENVELOPE/HEADER/BODY/DESC skeleton, returns (envelope, body, desc)"""
    envelope = ET.Element('ENVELOPE')
    header = ET.SubElement(envelope, 'HEADER')
    ET.SubElement(header, 'VERSION').text = '1'
    ET.SubElement(header, 'TALLYREQUEST').text = tally_request
    ET.SubElement(header, 'TYPE').text = 'Data'
    ET.SubElement(header, 'ID').text = request_id

    body = ET.SubElement(envelope, 'BODY')
    desc = ET.SubElement(body, 'DESC')
    variables = ET.SubElement(desc, 'STATICVARIABLES')
    for name, value in static_variables.items():
        ET.SubElement(variables, name).text = str(value)

    return envelope, body, desc


def _to_xml(envelope) -> str:
    return XML_DECLARATION + ET.tostring(envelope, encoding='unicode')


def _format_amount(amount) -> str:
    return f"{float(amount):.2f}"


def build_export_xml(request_id: str, company_name: Optional[str] = None,
                     from_date: Optional[str] = None, to_date: Optional[str] = None,
                     collection: Optional[Dict] = None) -> str:
    """
    Build an Export (read) request

    Args:
        request_id: Report or collection name, e.g. 'CompanyList', 'LedgerList'
        company_name: Sets SVCURRENTCOMPANY
        from_date: YYYYMMDD lower bound
        to_date: YYYYMMDD upper bound
        collection: Inline TDL collection {'type': 'Ledger', 'fetch': 'Name, Parent'},
            optionally with a 'filter' formula restricting its objects
    """
    static_variables = {'SVEXPORTFORMAT': '$$SysName:XML'}
    if company_name:
        static_variables['SVCURRENTCOMPANY'] = company_name
    if from_date:
        static_variables['SVFROMDATE'] = from_date
    if to_date:
        static_variables['SVTODATE'] = to_date

    envelope, _, desc = _envelope('Export', request_id, static_variables)

    if collection:
        tdl_message = ET.SubElement(ET.SubElement(desc, 'TDL'), 'TDLMESSAGE')
        coll = ET.SubElement(tdl_message, 'COLLECTION', NAME=request_id)
        ET.SubElement(coll, 'TYPE').text = collection['type']
        ET.SubElement(coll, 'FETCH').text = collection['fetch']
        if collection.get('filter'):
            filter_name = f"{request_id}Filter"
            ET.SubElement(coll, 'FILTER').text = filter_name
            ET.SubElement(tdl_message, 'SYSTEM', TYPE='Formulae', NAME=filter_name).text = collection['filter']

    return _to_xml(envelope)


def build_voucher_xml(voucher: Dict, action: str = 'Create') -> str:
    """
    Build an Import request for one voucher

    With action='Alter' the voucher is matched by its 'master_id' and 'guid'
    and replaced as a whole, ledger entries included.
    """
    envelope, body, _ = _envelope('Import', 'Vouchers', {'SVCURRENTCOMPANY': voucher['company_name']})
    message = ET.SubElement(ET.SubElement(body, 'DATA'), 'TALLYMESSAGE')

    voucher_type = voucher['voucher_type']
    attributes = {'VCHTYPE': voucher_type, 'ACTION': action}
    if action == 'Alter':
        attributes['REMOTEID'] = str(voucher.get('master_id') or '')
        attributes['VCHKEY'] = str(voucher.get('guid') or '')
    element = ET.SubElement(message, 'VOUCHER', attributes)
    if action == 'Alter':
        ET.SubElement(element, 'MASTERID').text = str(voucher.get('master_id') or '')
    ET.SubElement(element, 'DATE').text = voucher.get('date') or ''
    ET.SubElement(element, 'VOUCHERTYPENAME').text = voucher_type
    ET.SubElement(element, 'VOUCHERNUMBER').text = str(voucher.get('voucher_number') or '')
    ET.SubElement(element, 'NARRATION').text = voucher.get('narration') or ''

    for entry in voucher['ledger_entries']:
        line = ET.SubElement(element, 'ALLLEDGERENTRIES.LIST')
        ET.SubElement(line, 'LEDGERNAME').text = entry['ledger_name']
        ET.SubElement(line, 'ISDEEMEDPOSITIVE').text = entry.get('is_deemed_positive') or 'No'
        ET.SubElement(line, 'AMOUNT').text = _format_amount(entry['amount'])

    return _to_xml(envelope)


def build_ledger_xml(name: str, parent: str, company_name: str, opening_balance=0) -> str:
    """Build an Import request creating one ledger"""
    envelope, body, _ = _envelope('Import', 'Ledgers', {'SVCURRENTCOMPANY': company_name})
    message = ET.SubElement(ET.SubElement(body, 'DATA'), 'TALLYMESSAGE')

    ledger = ET.SubElement(message, 'LEDGER', NAME=name, ACTION='Create')
    ET.SubElement(ledger, 'NAME').text = name
    ET.SubElement(ledger, 'PARENT').text = parent
    ET.SubElement(ledger, 'OPENINGBALANCE').text = _format_amount(opening_balance or 0)

    return _to_xml(envelope)


# =========================================================================
# RESPONSE PARSING
# =========================================================================

def element_to_dict(element) -> Dict:
    """
    Convert an XML element tree to nested dicts

    Leaf elements become their text, repeated tags become lists and
    attributes are kept under '@name' keys.
    """
    children = list(element)
    if not children and not element.attrib:
        return {element.tag: (element.text or '').strip()}

    value = {f'@{k}': v for k, v in element.attrib.items()}
    for child in children:
        child_value = element_to_dict(child)[child.tag]
        if child.tag in value:
            if not isinstance(value[child.tag], list):
                value[child.tag] = [value[child.tag]]
            value[child.tag].append(child_value)
        else:
            value[child.tag] = child_value

    text = (element.text or '').strip()
    if text:
        value['#text'] = text

    return {element.tag: value}


def check_import_result(root) -> Dict:
    """
    Read CREATED/ALTERED/ERRORS counters from an Import response

    Raises:
        TallyError: ERRORS > 0 or a LINEERROR is present
    """
    def counter(tag):
        total = 0
        for node in root.iter(tag):
            try:
                total += int((node.text or '0').strip())
            except ValueError:
                continue
        return total

    line_errors = [(node.text or '').strip() for node in root.iter('LINEERROR') if (node.text or '').strip()]
    result = {
        'created': counter('CREATED'),
        'altered': counter('ALTERED'),
        'errors': counter('ERRORS'),
        'line_errors': line_errors
    }

    if result['errors'] or line_errors:
        detail = '; '.join(line_errors) if line_errors else f"{result['errors']} error(s)"
        raise TallyError(f"Tally rejected the import: {detail}")

    return result


def _amount_of(text) -> float:
    try:
        return float((text or '0').replace(',', '').strip() or 0)
    except ValueError:
        return 0.0


def extract_ledger_entries(root, ledger_name: str) -> List[Dict]:
    """
    Flatten an exported voucher collection into reviewable entries

    Each entry carries the voucher identity (master_id, guid), the amount
    posted to ledger_name and every ledger line of the voucher, so the
    voucher can later be re-imported with one ledger swapped.
    """
    wanted = ledger_name.strip().lower()
    entries = []

    for voucher in root.iter('VOUCHER'):
        lines = [{
            'ledger_name': (line.findtext('LEDGERNAME') or '').strip(),
            'amount': _amount_of(line.findtext('AMOUNT')),
            'is_deemed_positive': (line.findtext('ISDEEMEDPOSITIVE') or 'No').strip()
        } for line in voucher.findall('ALLLEDGERENTRIES.LIST')]

        target = next((line for line in lines if line['ledger_name'].lower() == wanted), None)

        entries.append({
            'master_id': (voucher.findtext('MASTERID') or voucher.get('REMOTEID') or '').strip(),
            'guid': (voucher.findtext('GUID') or voucher.get('VCHKEY') or '').strip(),
            'date': (voucher.findtext('DATE') or '').strip(),
            'voucher_type': (voucher.findtext('VOUCHERTYPENAME') or voucher.get('VCHTYPE') or '').strip(),
            'voucher_number': (voucher.findtext('VOUCHERNUMBER') or '').strip(),
            'narration': (voucher.findtext('NARRATION') or '').strip(),
            'amount': abs(target['amount']) if target else 0.0,
            'is_deemed_positive': target['is_deemed_positive'] if target else 'No',
            'ledger_entries': lines
        })

    return entries


# =========================================================================
# CLIENT
# =========================================================================

class TallyConnector:
    """Client for one Tally instance"""

    def __init__(self, host: str = TALLY_HOST, port: int = TALLY_PORT, timeout: int = TALLY_TIMEOUT):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.url = f"http://{host}:{port}/"

    def _post(self, xml_data: str):
        """POST an envelope and return the parsed response root element"""
        try:
            response = requests.post(
                self.url,
                data=xml_data.encode('utf-8'),
                headers={'Content-Type': 'application/xml'},
                timeout=self.timeout
            )
        except requests.exceptions.Timeout as e:
            raise TallyError(f"Tally did not respond within {self.timeout}s") from e
        except requests.exceptions.RequestException as e:
            raise TallyError(f"Connection Error: {e}. Make sure Tally is running and ODBC/API is enabled.") from e

        if response.status_code != 200:
            raise TallyError(f"Tally responded with status {response.status_code}")

        try:
            return ET.fromstring(response.content)
        except ET.ParseError as e:
            raise TallyError(f"XML Parse Error: {e}") from e

    def send_request(self, xml_data: str) -> Dict:
        """Send an XML envelope, return the response as nested dicts"""
        return element_to_dict(self._post(xml_data))

    def test_connection(self) -> Dict:
        """Check that Tally answers; never raises"""
        try:
            result = self.send_request(build_export_xml('CompanyList'))
            return {'success': True, 'data': result}
        except TallyError as e:
            print(f"[WARNING] Tally connection test failed: {e}", flush=True)
            return {'success': False, 'error': str(e)}

    def get_companies(self) -> Dict:
        """List companies open in Tally"""
        return self.send_request(build_export_xml('CompanyList'))

    def get_ledgers(self, company_name: str) -> Dict:
        """List ledgers of a company with parent group and closing balance"""
        return self.send_request(build_export_xml(
            'LedgerList',
            company_name=company_name,
            collection={'type': 'Ledger', 'fetch': 'Name, Parent, ClosingBalance'}
        ))

    def get_vouchers(self, company_name: str, from_date: str, to_date: str) -> Dict:
        """List vouchers of a company between two YYYYMMDD dates"""
        return self.send_request(build_export_xml(
            'VoucherList', company_name=company_name, from_date=from_date, to_date=to_date
        ))

    def create_voucher(self, voucher: Dict) -> Dict:
        """
        Create one voucher

        Returns:
            Import counters {'created', 'altered', 'errors', 'line_errors'}
        """
        root = self._post(build_voucher_xml(voucher))
        return check_import_result(root)

    submit_voucher = create_voucher

    def create_ledger(self, name: str, parent: str, company_name: str, opening_balance=0) -> Dict:
        """Create one ledger under a parent group"""
        root = self._post(build_ledger_xml(name, parent, company_name, opening_balance))
        return check_import_result(root)

    def get_ledger_entries(self, company_name: str, ledger_name: str,
                           from_date: str, to_date: str) -> List[Dict]:
        """
        Vouchers between two YYYYMMDD dates that post to ledger_name

        Returns:
            List of entries as built by extract_ledger_entries
        """
        root = self._post(build_export_xml(
            'LedgerVouchers',
            company_name=company_name,
            from_date=from_date,
            to_date=to_date,
            collection={
                'type': 'Voucher',
                'fetch': 'DATE, VOUCHERTYPENAME, VOUCHERNUMBER, NARRATION, MASTERID, GUID, ALLLEDGERENTRIES.LIST',
                'filter': f'$$FilterByLedger:$ALLLEDGERENTRIES.LIST:LEDGERNAME:"{ledger_name}"'
            }
        ))
        return extract_ledger_entries(root, ledger_name)

    def alter_voucher(self, voucher: Dict) -> Dict:
        """Replace an existing voucher identified by its master_id and guid"""
        root = self._post(build_voucher_xml(voucher, action='Alter'))
        return check_import_result(root)
