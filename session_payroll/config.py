"""
Configuration constants and environment setup.
"""
import os

from dotenv import load_dotenv

load_dotenv()

# =============================================================================
# MATCHING
# =============================================================================

# Client names are compared on "first name + last name" only
MATCH_MAX_WORDS = 2

# First-name-only matches need a name longer than 3 characters
MIN_FIRST_NAME_LENGTH = 4

# =============================================================================
# SUPERVISION
# =============================================================================

DEFAULT_SUPERVISION_KEYWORDS = ['εποπτεία', 'supervision', 'επόπτευση', 'supervise']

SUPERVISION_KEYWORDS = [
    kw.strip()
    for kw in os.getenv('SUPERVISION_KEYWORDS', ','.join(DEFAULT_SUPERVISION_KEYWORDS)).split(',')
    if kw.strip()
]

# Employee share of the supervision price (company gets the rest)
SUPERVISION_EMPLOYEE_SHARE = os.getenv('SUPERVISION_EMPLOYEE_SHARE', '0.40')

SUPERVISION_ENTRY_NAME = 'Εποπτεία (Supervision)'

# =============================================================================
# CALENDAR
# =============================================================================

RED_CANCELLED_COLOR = '11'   # cancelled, not paid
GREY_PENDING_COLOR = '8'     # cancelled, client pays next time

CALENDAR_TIMEZONE = os.getenv('CALENDAR_TIMEZONE', 'Europe/Athens')

UNTITLED_EVENT = '(no title)'

# =============================================================================
# MARKERS
# =============================================================================

REJECTED_MATCH_MARKER = '__REJECTED__'

# =============================================================================
# PRICING
# =============================================================================

DEFAULT_SESSION_PRICE = os.getenv('DEFAULT_SESSION_PRICE', '50.00')
DEFAULT_EMPLOYEE_SHARE = os.getenv('DEFAULT_EMPLOYEE_SHARE', '22.50')
DEFAULT_COMPANY_SHARE = os.getenv('DEFAULT_COMPANY_SHARE', '27.50')

PRICE_TOLERANCE = '0.01'
MAX_SESSION_PRICE = '1000.00'
MAX_SUPERVISION_PRICE = '500.00'

# =============================================================================
# PERIODS
# =============================================================================

MAX_DATE_RANGE_DAYS = 365
LARGE_DATE_RANGE_WARNING_DAYS = 90
