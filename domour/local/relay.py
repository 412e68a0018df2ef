"""
Pass-through relay to the external `gemini` command-line tool.

The prompt and any attachments are joined into one text block, fed to the tool
on stdin and its stdout is returned. Network traffic of the tool goes through
the local HTTP proxy.
"""

import os
import logging
import subprocess
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from domour.local.config import effective_settings as config
from domour.local.errors import RelayError

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Attachment:
    name: str
    content: str
    is_binary: bool = False     # content is base64 text


def build_prompt(prompt: str, attachments: Optional[Iterable[Attachment]] = None) -> str:
    """
    Joins a prompt and its attachments into the text sent to the tool.

    Attachments with an empty name or content are skipped. Text attachments are
    fenced, binary ones are labelled as base64.
    """
    parts = [prompt.strip()]
    attachments = list(attachments or [])
    if attachments:
        parts.append("\n\nAttachments:\n")
        for attachment in attachments:
            name, content = attachment.name.strip(), attachment.content.strip()
            if not name or not content:
                continue
            if attachment.is_binary:
                parts.append(f"- {name} (base64)\n{content}\n")
            else:
                parts.append(f"- {name}\n```\n{content}\n```\n")
    return "".join(parts)


def _proxy_env() -> Dict[str, str]:
    env = dict(os.environ)
    env["HTTP_PROXY"] = config.RELAY_PROXY_URL
    env["HTTPS_PROXY"] = config.RELAY_PROXY_URL
    return env


def chat(prompt: str, attachments: Optional[Iterable[Attachment]] = None) -> str:
    """
    Sends a prompt to the chat tool and returns its answer.

    :param prompt: The user's prompt; an empty one returns '' without running anything.
    :param attachments: Optional files to append to the prompt.
    :raises RelayError: On timeout, a failing exit status or an empty answer.
    """
    if not prompt.strip():
        return ""

    text = build_prompt(prompt, attachments)
    log.debug(f"Relaying {len(text)} characters to '{config.RELAY_COMMAND[0]}'.")
    try:
        result = subprocess.run(
            config.RELAY_COMMAND,
            input=text.encode("utf-8"),
            capture_output=True,
            env=_proxy_env(),
            timeout=config.RELAY_TIMEOUT,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        raise RelayError("gemini cli timeout") from e
    except OSError as e:
        raise RelayError(f"gemini cli error: {e}") from e

    if result.returncode != 0:
        message = result.stderr.decode("utf-8", errors="replace").strip()
        raise RelayError(f"gemini cli error: {message or f'exit status {result.returncode}'}")

    output = result.stdout.decode("utf-8", errors="replace").strip()
    if not output:
        raise RelayError("gemini cli returned empty response")
    return output
