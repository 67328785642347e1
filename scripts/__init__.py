"""
Scripts Package.

Operational scripts for the trade journal.

Scripts:
- bootstrap_db: Database initialization
- analyze_trade: Pre-trade analysis from the command line
"""

# Scripts are meant to be run directly, not imported
