"""
TenderWatch - Procurement tender monitor.

Scans government and procurement portals through a chain of relay
fallbacks, extracts tenders matching a keyword set with an LLM, and
emails the findings to a fixed recipient list.
"""

__version__ = "0.1.0"
__app_name__ = "tenderwatch"
