from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import List, Optional

from flask_login import UserMixin


def _from_api(cls, payload):
    """ Builds a dataclass from backend JSON, ignoring keys we don't know about. """
    payload = payload or {}
    known = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in payload.items() if k in known})


def parse_timestamp(value) -> Optional[datetime]:
    """
    The backend sends ISO strings, sometimes with a trailing 'Z'.
    Zoned values come back as naive local time, like datetime.now().
    """
    if not value:
        return None
    if isinstance(value, datetime):
        ts = value
    else:
        try:
            ts = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
        except ValueError:
            return None
    if ts.tzinfo is not None:
        ts = ts.astimezone().replace(tzinfo=None)
    return ts


# ==========================================
#  1. USER (decoded from the token)
# ==========================================
class TokenUser(UserMixin):
    """
    Whatever the bearer token claims. Used by Flask-Login for page gating,
    never trusted as proof of identity.
    """

    def __init__(self, user_id, email, is_admin=False):
        self.user_id = user_id
        self.email = email
        self.is_admin = is_admin

    def get_id(self):
        return str(self.user_id)

    def __repr__(self):
        return f"<TokenUser {self.email} admin={self.is_admin}>"


@dataclass
class UserProfile:
    id: int = 0
    email: str = ''
    name: str = ''
    phone: str = ''
    is_admin: bool = False
    total_donations_count: int = 0
    created_at: Optional[str] = None

    from_api = classmethod(_from_api)


# ==========================================
#  2. DONATION
# ==========================================
@dataclass
class Donation:
    id: int = 0
    status: str = ''
    scan_timestamp: Optional[str] = None
    created_at: Optional[str] = None
    media_url: Optional[str] = None
    verification_notes: Optional[str] = None
    bin_code: str = ''
    location_name: str = ''
    user_name: str = ''
    user_email: str = ''
    media_latitude: Optional[float] = None
    media_longitude: Optional[float] = None
    bin_latitude: Optional[float] = None
    bin_longitude: Optional[float] = None
    admin_reviewed: bool = False
    reviewed_at: Optional[str] = None

    from_api = classmethod(_from_api)


@dataclass
class UserDetails(UserProfile):
    """ Admin view of one user plus their donations. """
    donations: List[Donation] = field(default_factory=list)

    @classmethod
    def from_api(cls, payload):
        details = _from_api(cls, payload)
        details.donations = [Donation.from_api(d) for d in (details.donations or [])]
        return details


# ==========================================
#  3. BIN
# ==========================================
@dataclass
class Bin:
    id: int = 0
    bin_code: str = ''
    location_name: str = ''
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    status: str = 'active'
    address: str = ''
    operating_hours: str = ''
    distance: Optional[float] = None

    from_api = classmethod(_from_api)


# ==========================================
#  4. VOUCHERS
# ==========================================
@dataclass
class Voucher:
    id: int = 0
    partner_name: str = ''
    description: str = ''
    discount_amount: str = ''
    terms_conditions: str = ''
    expiry_date: Optional[str] = None

    from_api = classmethod(_from_api)


@dataclass
class ClaimedVoucher:
    id: int = 0
    voucher_code: str = ''
    claimed_at: Optional[str] = None
    partner_name: str = ''
    discount_amount: str = ''
    expiry_date: Optional[str] = None

    from_api = classmethod(_from_api)


@dataclass
class Eligibility:
    can_claim: bool = False
    has_approved_donation: bool = False
    has_claimed_this_month: bool = False
    claimed_voucher: Optional[ClaimedVoucher] = None

    @classmethod
    def from_api(cls, payload):
        payload = payload or {}
        claimed = payload.get('claimedVoucher')
        return cls(
            can_claim=bool(payload.get('canClaim')),
            has_approved_donation=bool(payload.get('hasApprovedDonation')),
            has_claimed_this_month=bool(payload.get('hasClaimedThisMonth')),
            claimed_voucher=ClaimedVoucher.from_api(claimed) if claimed else None,
        )


# ==========================================
#  5. ADMIN STATS
# ==========================================
@dataclass
class AdminStats:
    total_donations: int = 0
    pending_review: int = 0
    approved_today: int = 0
    total_users: int = 0
    total_vouchers: int = 0

    @classmethod
    def from_api(cls, payload):
        payload = payload or {}
        return cls(
            total_donations=payload.get('totalDonations', 0),
            pending_review=payload.get('pendingReview', 0),
            approved_today=payload.get('approvedToday', 0),
            total_users=payload.get('totalUsers', 0),
            total_vouchers=payload.get('totalVouchers', 0),
        )
