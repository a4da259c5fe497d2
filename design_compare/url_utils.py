"""Shared URL utilities — build render URLs for the design workbench and Storybook."""

from __future__ import annotations

import re
from urllib.parse import quote, urlparse


def with_port(url: str, port: int | str) -> str:
    """Replace the port of ``url``, adding one if it has none."""
    if re.search(r":\d+", urlparse(url).netloc):
        return re.sub(r":\d+", f":{port}", url, count=1)
    parsed = urlparse(url)
    return parsed._replace(netloc=f"{parsed.hostname}:{port}").geturl()


def design_render_url(workbench_url: str, port: int | str, design_slug: str, variation_slug: str) -> str:
    base = with_port(workbench_url, port).rstrip("/")
    return f"{base}/render/{quote(design_slug)}/{quote(variation_slug)}"


def storybook_story_url(storybook_url: str, port: int | str, story_id: str) -> str:
    base = with_port(storybook_url, port).rstrip("/")
    return f"{base}/iframe.html?id={quote(story_id)}&viewMode=story"
