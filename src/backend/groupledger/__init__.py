"""
GroupLedger package.

This package turns a group's shared expenses into participant shares, member
balances, settlement payments and spending analytics.
"""

from .analytics import *
from .config import *
from .engine import *
from .errors import *
from .expenses import *
from .ledger import *
from .models import *
from .settlement import *
from .splitter import *
