# InviteDesk HTTP layer
# Created: 2026-10-13
#
# OAuth endpoints, Google sign-in, health and the bearer-guarded MCP transport.
