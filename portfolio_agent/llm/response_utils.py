"""
LLM response utilities for handling multi-format model outputs.

Chat models return either a plain string or a list of content blocks
(reasoning models put reasoning and text in separate blocks).
"""

from typing import Any

from loguru import logger


def extract_text_from_response(response: Any) -> str:
    """
    Extract the text content from an LLM response.

    Args:
        response: AIMessage, plain string, or list of content blocks

    Returns:
        Concatenated text blocks (reasoning blocks skipped), or "" when
        there is no text

    Example:
        response.content = [
            {'type': 'reasoning', 'text': '...'},
            {'type': 'text', 'text': '{"in_scope": true, "answer": "..."}'}
        ]
        extract_text_from_response(response) -> '{"in_scope": true, "answer": "..."}'
    """
    content = response.content if hasattr(response, "content") else response

    if not content:
        return ""

    if isinstance(content, str):
        return content

    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") != "reasoning" and "text" in block:
                parts.append(block["text"])

        if not parts:
            logger.warning(f"No text blocks found in structured response ({len(content)} blocks)")
        return "".join(parts)

    return str(content)
