"""LangSmith tracing for coach replies.

LangChain picks tracing up from the environment, so startup only has to
export the settings. Each model call then carries a runnable config that
groups its trace under the call session and labels it with the persona.
"""

import logging
import os
from typing import Any, Dict, Iterable, Optional

from ..core.config import Settings

logger = logging.getLogger(__name__)

TRACE_TAG = "english-coach"


def initialize_langsmith(settings: Settings) -> bool:
    """
    Export tracing settings to the environment LangChain reads.

    Tracing needs both LANGSMITH_TRACING and an API key; when the key is
    missing it is switched off rather than failing every model call.

    Returns:
        Whether coach replies will be traced.
    """
    api_key = settings.LANGSMITH_API_KEY.strip()
    enabled = bool(settings.LANGSMITH_TRACING and api_key)

    exported = {
        "LANGSMITH_TRACING": "true" if enabled else "false",
        "LANGSMITH_API_KEY": api_key,
        "LANGSMITH_ENDPOINT": settings.LANGSMITH_ENDPOINT,
        "LANGSMITH_PROJECT": settings.LANGSMITH_PROJECT,
    }
    os.environ.update({name: value for name, value in exported.items() if value})

    if enabled:
        logger.info(f"Tracing coach replies to LangSmith project '{settings.LANGSMITH_PROJECT}'")
    elif settings.LANGSMITH_TRACING:
        logger.warning("Coach reply tracing requested without LANGSMITH_API_KEY; replies are not traced")
    else:
        logger.debug("Coach reply tracing is off")

    return enabled


def build_trace_config(
    session_id: str,
    mode: str,
    tags: Optional[Iterable[str]] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Runnable config for one coach reply.

    The session id is the trace thread, so every reply of a call lands in
    one LangSmith thread; the persona mode names the run and tags it.
    """
    return {
        "configurable": {"thread_id": session_id},
        "run_name": f"coach_reply:{mode}",
        "tags": [TRACE_TAG, f"mode:{mode}", *(tags or [])],
        "metadata": {**(metadata or {}), "session_id": session_id, "mode": mode},
    }
