# Partner vouchers shown on /voucher/<id>.
# Edit this list to add/remove/update vouchers.
from dataclasses import dataclass, field
from typing import List, Optional

STANDARD_TERMS = [
    'Valid for one-time use only',
    'Cannot be combined with other offers',
]


@dataclass
class CatalogVoucher:
    id: int
    brand: str
    discount: str
    points: int
    color: str
    code: str
    expiry_date: str
    terms: List[str] = field(default_factory=list)


VOUCHERS = [
    CatalogVoucher(
        id=1, brand='Starbucks', discount='20% OFF', points=50, color='#00704A',
        code='STAR20U4B', expiry_date='31 Dec 2024',
        terms=STANDARD_TERMS + ['Valid at all participating stores', 'No cash value'],
    ),
    CatalogVoucher(
        id=2, brand='H&M', discount='15% OFF', points=40, color='#E50010',
        code='HM15U4B', expiry_date='31 Dec 2024',
        terms=STANDARD_TERMS + ['Valid at all H&M stores in Malaysia', 'No cash value'],
    ),
    CatalogVoucher(
        id=3, brand='Nike', discount='25% OFF', points=60, color='#000000',
        code='NIKE25U4B', expiry_date='31 Dec 2024',
        terms=STANDARD_TERMS + ['Valid at participating Nike stores', 'Excludes sale items'],
    ),
    CatalogVoucher(
        id=4, brand='Uniqlo', discount='10% OFF', points=30, color='#FF0000',
        code='UNI10U4B', expiry_date='31 Dec 2024',
        terms=STANDARD_TERMS + ['Valid at all Uniqlo Malaysia stores', 'No cash value'],
    ),
]


def get_voucher_by_id(voucher_id) -> Optional[CatalogVoucher]:
    return next((v for v in VOUCHERS if v.id == voucher_id), None)
