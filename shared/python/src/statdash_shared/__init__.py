"""
statdash_shared — shared configuration, models, and constants for statdash.

Usage:
    from statdash_shared.config import settings
    from statdash_shared.db import build_sheets_service, build_supabase_client
    from statdash_shared.models import DataPoint, Indicator
    from statdash_shared.time_utils import period_code, period_date_string
    from statdash_shared.constants import DATA_COLUMNS, CONFIG_COLUMNS
"""

__version__ = "0.1.0"
