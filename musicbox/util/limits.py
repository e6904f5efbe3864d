from __future__ import annotations

"""Hard limits on what a track will accept.

Enforced by Track.update and on session load so a pasted novel does not
stall the tick loop.
"""

MAX_LINES = 64
MAX_LINE_LENGTH = 512
MAX_TEXT_CHARS = MAX_LINES * (MAX_LINE_LENGTH + 1)

# Offline bounces
MAX_RENDER_STEPS = 4096
