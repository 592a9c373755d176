"""
LLM-powered task prioritizer.

Takes the in-progress tasks sent by a board, asks a chat-completions model
to rank them from top to bottom priority, and returns the model's narrative:

    {"summary": "<ranked list>", "taskCount": <number of tasks>}

Used by board_server's /api/summarize endpoint.
"""
import json
import logging
from typing import Any, Dict, List

import requests

from .errors import SummarizationError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a helpful assistant that prioritizes tasks."

USER_PROMPT = "Please help me prioritize these tasks, rank them from top to bottom priority:\n\n{task_list}"

EMPTY_SUMMARY = "No tasks to summarize."


def format_task_list(tasks: List[Dict[str, Any]]) -> str:
    """One "- title: description" line per task (description optional)."""
    lines = []
    for task in tasks:
        line = f"- {task.get('title', '')}"
        if task.get("description"):
            line += f": {task['description']}"
        lines.append(line)
    return "\n".join(lines)


def build_messages(tasks: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    """Chat messages for the prioritization request."""
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": USER_PROMPT.format(task_list=format_task_list(tasks))},
    ]


def parse_completion(data: Dict[str, Any]) -> str:
    """Pull the first choice's text out of a chat-completions response."""
    try:
        return data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise SummarizationError(f"Unexpected OpenAI response: {json.dumps(data)[:200]}") from e


def prioritize(
    tasks: List[Dict[str, Any]],
    api_key: str,
    url: str = "https://api.openai.com/v1/chat/completions",
    model: str = "gpt-4o-mini",
    max_tokens: int = 1000,
    timeout: float = 60.0,
    session=None,
) -> Dict[str, Any]:
    """
    Rank tasks with the language model.

    Returns:
        {"summary": str, "taskCount": int}

    Raises:
        SummarizationError: missing key, transport failure, or non-2xx reply.
    """
    if not isinstance(tasks, list) or not tasks:
        logger.info("No tasks to summarize")
        return {"summary": EMPTY_SUMMARY, "taskCount": 0}

    if not api_key:
        logger.error("Missing OpenAI API key")
        raise SummarizationError("Missing OpenAI API key")

    payload = {
        "model": model,
        "messages": build_messages(tasks),
        "temperature": 1,
        "max_completion_tokens": max_tokens,
    }
    logger.debug(f"Prioritizing {len(tasks)} tasks:\n{format_task_list(tasks)}")

    http = session or requests
    try:
        r = http.post(
            url,
            json=payload,
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=timeout,
        )
    except requests.RequestException as e:
        raise SummarizationError(f"OpenAI API unreachable: {e}") from e

    if not r.ok:
        logger.error(f"OpenAI API error response: {r.text}")
        raise SummarizationError(f"OpenAI API error: {r.text}")

    try:
        data = r.json()
    except ValueError as e:
        raise SummarizationError("OpenAI API returned invalid JSON") from e

    summary = parse_completion(data)
    logger.info(f"Generated priorities for {len(tasks)} tasks")
    return {"summary": summary, "taskCount": len(tasks)}
