"""Orchestra constants shared by the run loop, stream adapter and encoder.

These values are the defaults behind ``OrchestraConfig``; override them via
configuration rather than editing this module.
"""

from __future__ import annotations

# =============================================================================
# Stream Adapter
# =============================================================================

#: Custom event name under which every stream chunk is dispatched
STREAM_CHUNK_EVENT: str = "ai-sdk-stream-chunk"

#: Substring of a tool name that marks the tool call as a handoff
HANDOFF_MARKER: str = "handoffTo"

#: Result carried by the synthetic tool-result chunk paired with a handoff
HANDOFF_RESULT: str = "Done"

# =============================================================================
# Encoder
# =============================================================================

#: Header value advertising the AI data stream protocol version
DATA_STREAM_VERSION: str = "v1"
