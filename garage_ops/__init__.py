"""
Garage Ops Package

Data core for the garage workshop dashboard:
- Job intake and status tracking
- Customer history derived from job records
- Invoicing, inventory and purchasing
- WhatsApp outreach links
- Supabase sync with a local file cache fallback
"""

__version__ = "1.0.0"
__author__ = "Garage Ops Team"
