"""
Flag emojis and flag images.

Emojis come from the regional indicator symbol table and are keyed by
region. Flag images are looked up in the gallery of sovereign state flags
and downloaded concurrently, one directory per sovereign state.
"""

import os
from pathlib import Path
from typing import Callable, Dict, List, Mapping
from urllib.parse import urlparse

from bs4 import BeautifulSoup
from pydantic import BaseModel

from builders.regions import Region
from builders.sovereign_states import SovereignState
from resolution.identifier import Identifier, canonicalize
from scrapers import fetcher
from scrapers.cells import WIKI_PREFIX, first_link_title
from scrapers.table_scanner import InnerAsText, Matching, SparseSchema, expect_children, expect_text, scan
from utils.exceptions import SchemaError
from utils.logger import get_logger
from utils.task_pool import run_pool

logger = get_logger(__name__)

EMOJI_SCHEMA = SparseSchema(
    header_count=4,
    columns={
        0: Matching("a"),   # emoji
        1: InnerAsText(),   # alpha-2 code
        2: None,
        3: None,
    }
)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
SOURCE_FILE = "source.png"


class Flag(BaseModel):
    sovereignty: Identifier
    dir: str

    @property
    def source(self) -> Path:
        return Path(self.dir) / SOURCE_FILE

    def __str__(self) -> str:
        return f"{self.sovereignty} flag"


def build_emojis(document: BeautifulSoup, regions: Mapping[Identifier, Region]) -> Dict[Identifier, str]:
    """
    Build the flag emoji registry.

    Raises:
        SchemaError: a row without an emoji link or a two letter code
    """
    items: Dict[Identifier, str] = {}

    for row in scan(document, EMOJI_SCHEMA):
        emoji = first_link_title(WIKI_PREFIX, expect_children(row, 0, "flag emoji"))
        if emoji is None:
            raise SchemaError("Failed to read country flag emoji")

        code = next((t for t in expect_text(row, 1, f"region code of {emoji}") if len(t.strip()) == 2), None)
        if code is None:
            raise SchemaError(f"Failed to read country iso code from flag table for {emoji}")

        region_id = canonicalize(code)

        if region_id not in regions:
            logger.warning(f"Skipping emoji {emoji}: Region iso code {region_id} not found")
            continue

        if region_id in items:
            logger.warning(f"Skipping emoji for {region_id}: Duplicate entry")
            continue

        items[region_id] = emoji

    logger.info(f"Built {len(items)} flag emojis")
    return items


def _image_sources(document: BeautifulSoup, match) -> List[str]:
    return [
        img["src"] for img in document.find_all("img", alt=True, src=True)
        if match(img["alt"])
    ]


def find_flag_url(document: BeautifulSoup, state: SovereignState) -> str:
    """
    Gallery image URL for a sovereign state: exact short name, then exact
    long name, then an alt text starting with the short name.

    Raises:
        SchemaError: no image matches
    """
    urls = _image_sources(document, lambda alt: alt == state.name_short)
    if not urls:
        urls = _image_sources(document, lambda alt: alt == state.name_long)
    if not urls:
        urls = _image_sources(document, lambda alt: alt.startswith(state.name_short))

    if not urls:
        raise SchemaError(f"Flag for {state.name_short} not found")

    if len(urls) > 1:
        logger.warning(f"Found multiple flag urls for {state.name_short}, using the first one")

    return urls[0]


def download_flag(url: str, flag_dir: str) -> Path:
    """
    Download a PNG flag into ``flag_dir``/source.png. A file that turns out
    not to be a PNG image is removed again.

    Raises:
        ValueError: the URL or the payload is not a PNG image
        FetchError: transport failure
    """
    if os.path.splitext(urlparse(url).path)[1].lower() != ".png":
        raise ValueError(f"Expected flag file to be in png format: {url}")

    data = fetcher.fetch_bytes(url)
    if not data:
        raise ValueError(f"Unable to read bytes from {url}")

    os.makedirs(flag_dir, exist_ok=True)
    path = Path(flag_dir) / SOURCE_FILE
    path.write_bytes(data)

    if not data.startswith(PNG_SIGNATURE):
        path.unlink()
        raise ValueError(f"Expected flag image to be in PNG format: {url}")

    return path


def build_flags(
    gallery: Callable[[], BeautifulSoup],
    states: Mapping[Identifier, SovereignState],
    flags_dir: str,
    workers: int = 8,
    attempts: int = 5,
    retry_delay: float = 0.5,
) -> Dict[Identifier, Flag]:
    """
    Acquire a flag image for every given sovereign state.

    States whose source.png already exists are not downloaded again, and the
    gallery is only fetched when at least one image is missing. All image
    URLs are resolved before any download starts.

    Args:
        gallery: Zero-argument supplier of the gallery of sovereign state flags page
        states: Sovereign states to fetch flags for (usually UN members)
        flags_dir: Root directory, one subdirectory per state
        workers: Download pool size
        attempts: Attempts per flag
        retry_delay: Seconds between attempts

    Returns:
        Identifier to Flag

    Raises:
        SchemaError: a state has no image in the gallery
        TaskPoolError: a flag could not be downloaded
    """
    items: Dict[Identifier, Flag] = {}
    missing: Dict[Identifier, Flag] = {}

    for state_id, state in states.items():
        flag = Flag(sovereignty=state_id, dir=os.path.join(flags_dir, state_id))
        items[state_id] = flag

        if flag.source.is_file():
            logger.debug(f"Flag for {state_id} already exists at {flag.source}")
        else:
            missing[state_id] = flag

    tasks = {}

    if missing:
        document = gallery()
        for state_id, flag in missing.items():
            url = fetcher.normalize_url(find_flag_url(document, states[state_id]))
            tasks[state_id] = lambda url=url, flag_dir=flag.dir: download_flag(url, flag_dir)

    run_pool(tasks, workers=workers, attempts=attempts, delay=retry_delay)

    logger.info(f"{len(items)} flags available, {len(tasks)} downloaded")
    return items
