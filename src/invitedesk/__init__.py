"""InviteDesk: calendar invitation assistant served over MCP.

Created: 2026-10-12
"""

__version__ = "0.1.0"
