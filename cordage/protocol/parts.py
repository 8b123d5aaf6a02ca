"""
Conversion between content parts and protocol parts.

Function calls, function responses and code execution results travel as
data parts tagged with a ``cordage_type`` metadata entry.
"""

import base64
import json

from cordage.domain.content import Blob, CodeExecutionResult, FunctionCall, FunctionResponse, Part
from cordage.protocol.models import ProtocolPart
from cordage.utils.logging import get_logger

logger = get_logger(__name__)

METADATA_KEY_PREFIX = "cordage_"
CONTEXT_ID_PREFIX = "cordage"
CONTEXT_ID_SEPARATOR = ":"

DATA_PART_TYPE_KEY = "type"
DATA_PART_IS_LONG_RUNNING_KEY = "is_long_running"
DATA_PART_TYPE_FUNCTION_CALL = "function_call"
DATA_PART_TYPE_FUNCTION_RESPONSE = "function_response"
DATA_PART_TYPE_CODE_EXECUTION_RESULT = "code_execution_result"


def metadata_key(key: str) -> str:
    if not key:
        raise ValueError("Metadata key cannot be empty.")
    return f"{METADATA_KEY_PREFIX}{key}"


def to_context_id(app_name: str, user_id: str, session_id: str) -> str:
    if not app_name or not user_id or not session_id:
        raise ValueError("app_name, user_id and session_id must all be non-empty.")
    return CONTEXT_ID_SEPARATOR.join([CONTEXT_ID_PREFIX, app_name, user_id, session_id])


def from_context_id(context_id: str | None) -> tuple[str | None, str | None, str | None]:
    """Split a context id into (app_name, user_id, session_id), Nones if malformed."""
    if not context_id:
        return None, None, None
    parts = context_id.split(CONTEXT_ID_SEPARATOR)
    if len(parts) != 4:
        return None, None, None
    prefix, app_name, user_id, session_id = (part.strip() for part in parts)
    if prefix != CONTEXT_ID_PREFIX or not (app_name and user_id and session_id):
        return None, None, None
    return app_name, user_id, session_id


def content_part_to_protocol_part(part: Part) -> ProtocolPart | None:
    if part.text is not None:
        protocol_part = ProtocolPart(kind="text", text=part.text)
        if part.thought:
            protocol_part.metadata[metadata_key("thought")] = True
        return protocol_part

    if part.inline_data is not None:
        return ProtocolPart(
            kind="file",
            file_bytes=base64.b64encode(part.inline_data.data).decode("ascii"),
            mime_type=part.inline_data.mime_type,
        )

    if part.function_call is not None:
        return ProtocolPart(
            kind="data",
            data=part.function_call.model_dump(exclude_none=True),
            metadata={metadata_key(DATA_PART_TYPE_KEY): DATA_PART_TYPE_FUNCTION_CALL},
        )

    if part.function_response is not None:
        return ProtocolPart(
            kind="data",
            data=part.function_response.model_dump(exclude_none=True),
            metadata={metadata_key(DATA_PART_TYPE_KEY): DATA_PART_TYPE_FUNCTION_RESPONSE},
        )

    if part.code_execution_result is not None:
        return ProtocolPart(
            kind="data",
            data=part.code_execution_result.model_dump(exclude_none=True),
            metadata={metadata_key(DATA_PART_TYPE_KEY): DATA_PART_TYPE_CODE_EXECUTION_RESULT},
        )

    logger.warning("part_not_convertible", part=part.model_dump(exclude_none=True))
    return None


def protocol_part_to_content_part(protocol_part: ProtocolPart) -> Part | None:
    if protocol_part.kind == "text":
        thought = protocol_part.metadata.get(metadata_key("thought"))
        return Part(text=protocol_part.text or "", thought=True if thought else None)

    if protocol_part.kind == "file":
        if protocol_part.file_bytes is not None:
            return Part(
                inline_data=Blob(
                    mime_type=protocol_part.mime_type or "application/octet-stream",
                    data=base64.b64decode(protocol_part.file_bytes),
                )
            )
        logger.warning("file_uri_part_not_supported", uri=protocol_part.file_uri)
        return None

    data = protocol_part.data or {}
    part_type = protocol_part.metadata.get(metadata_key(DATA_PART_TYPE_KEY))
    if part_type == DATA_PART_TYPE_FUNCTION_CALL:
        return Part(function_call=FunctionCall.model_validate(data))
    if part_type == DATA_PART_TYPE_FUNCTION_RESPONSE:
        return Part(function_response=FunctionResponse.model_validate(data))
    if part_type == DATA_PART_TYPE_CODE_EXECUTION_RESULT:
        return Part(code_execution_result=CodeExecutionResult.model_validate(data))
    return Part(text=json.dumps(data, ensure_ascii=False))


__all__ = [
    "DATA_PART_IS_LONG_RUNNING_KEY",
    "DATA_PART_TYPE_CODE_EXECUTION_RESULT",
    "DATA_PART_TYPE_FUNCTION_CALL",
    "DATA_PART_TYPE_FUNCTION_RESPONSE",
    "DATA_PART_TYPE_KEY",
    "content_part_to_protocol_part",
    "from_context_id",
    "metadata_key",
    "protocol_part_to_content_part",
    "to_context_id",
]
