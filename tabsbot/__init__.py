"""
Tabs Bot - Source Package

A chat-room bot that keeps a shared expense tab for every room it joins.
Room members record payments with short commands and the bot keeps the
running balance of each member in integer cents.

DESIGN PRINCIPLES:
1. Money is an integer count of cents, never a float
2. A failed command never changes the tab
3. The ledger does no I/O, collaborators persist and deliver
4. State storage is swappable (flat file or room state)
"""

__version__ = "0.3.0"
__author__ = "Tabs Bot Team"
