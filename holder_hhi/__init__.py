"""Token Holder Concentration (HHI) Tool.

Fetches every active holder of an SPL token, aggregates balances with exact
integer arithmetic and computes the Herfindahl-Hirschman Index together with
a ranked list of the largest holders.
"""

__version__ = "0.1.0"
