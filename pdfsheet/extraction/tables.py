#!/usr/bin/env python3
"""
Table recognition on page images using a vision LLM.

Each page image is sent once to an OpenAI-compatible chat completions
endpoint together with a fixed instruction set. The free-text answer is
decoded by a tolerant parser that never raises: anything it cannot turn
into a non-empty table matrix becomes a "no table" outcome for that page.

Usage:
    from pdfsheet.extraction.tables import TableExtractor, parse_table_response

    extractor = TableExtractor(client, model="meta-llama/llama-4-scout-17b-16e-instruct")
    result = await extractor.extract(png_bytes, page_num=1, is_first_page=True)
    if result.found:
        print(result.table)
"""

import base64
import json
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from openai import AsyncOpenAI

from pdfsheet.config import Config, config
from pdfsheet.core.constants import (
    HEADER_RULE_FIRST_PAGE,
    HEADER_RULE_NEXT_PAGES,
    TABLE_PROMPT_TEMPLATE,
)
from pdfsheet.core.llm import get_vision_client, strip_think_tags

logger = logging.getLogger("pdfsheet.tables")

TableMatrix = List[List[Any]]

# Outcomes of a single page extraction
RESULT_TABLE = "table"
RESULT_NO_TABLE = "no_table"
RESULT_MALFORMED = "malformed"
RESULT_FAILED = "failed"


@dataclass
class ExtractionResult:
    """Outcome of extracting one page.

    Only ``status == "table"`` carries rows; every other status means
    "no table on this page" and differs only in why.
    """

    status: str
    table: TableMatrix = field(default_factory=list)
    detail: str = ""

    @property
    def found(self) -> bool:
        return self.status == RESULT_TABLE and len(self.table) > 0

    @classmethod
    def no_table(cls, detail: str = "") -> "ExtractionResult":
        return cls(status=RESULT_NO_TABLE, detail=detail)

    @classmethod
    def malformed(cls, detail: str) -> "ExtractionResult":
        return cls(status=RESULT_MALFORMED, detail=detail)

    @classmethod
    def failed(cls, detail: str) -> "ExtractionResult":
        return cls(status=RESULT_FAILED, detail=detail)


def build_extraction_prompt(is_first_page: bool) -> str:
    """Instruction text for one page; only the first page keeps its header row."""
    header_rule = HEADER_RULE_FIRST_PAGE if is_first_page else HEADER_RULE_NEXT_PAGES
    return TABLE_PROMPT_TEMPLATE.format(header_rule=header_rule)


def find_json_object(text: str) -> Optional[str]:
    """Locate the first balanced {...} substring in free text.

    Braces inside JSON string literals are ignored, so cell values such as
    "{total}" do not break the scan. If the first object is never closed the
    remainder of the text is scanned for another opening brace.

    Args:
        text: Model output, possibly wrapped in prose or markdown fences

    Returns:
        The JSON object text, or None if no balanced object exists
    """
    if not text:
        return None

    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start : i + 1]
        start = text.find("{", start + 1)
    return None


def _table_from_payload(payload: Any) -> Optional[TableMatrix]:
    """Pick the table out of a decoded response ("table" preferred, else first of "tables")."""
    if not isinstance(payload, dict):
        return None

    table = payload.get("table")
    if isinstance(table, list) and table:
        return table

    tables = payload.get("tables")
    if isinstance(tables, list) and tables:
        first = tables[0]
        # Some models wrap each table: {"tables": [{"table": [...]}]}
        if isinstance(first, dict):
            first = first.get("table") or first.get("rows")
        if isinstance(first, list) and first:
            return first

    return None


def parse_table_response(content: Optional[str]) -> ExtractionResult:
    """Decode a model response into a table matrix.

    Never raises. Empty responses and explicit empty tables are "no_table";
    responses without a decodable JSON object are "malformed".

    Args:
        content: Raw message content from the model

    Returns:
        ExtractionResult with status "table", "no_table" or "malformed"
    """
    if not content or not content.strip():
        return ExtractionResult.no_table("empty response")

    content = strip_think_tags(content)

    json_text = find_json_object(content)
    if json_text is None:
        return ExtractionResult.malformed("response has no JSON object")

    try:
        payload = json.loads(json_text)
    except json.JSONDecodeError as e:
        return ExtractionResult.malformed(f"invalid JSON: {e}")

    table = _table_from_payload(payload)
    if table is None:
        return ExtractionResult.no_table("response contains no table rows")

    return ExtractionResult(status=RESULT_TABLE, table=table)


class TableExtractor:
    """Vision LLM table extractor.

    Args:
        client: Async OpenAI-compatible client
        model: Vision model name
        temperature: Sampling temperature (default 0.1)
        max_tokens: Maximum tokens in response (default 8000)
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str,
        temperature: float = 0.1,
        max_tokens: int = 8000,
    ):
        self.client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def _complete(self, image_png: bytes, is_first_page: bool) -> str:
        image_data = base64.standard_b64encode(image_png).decode("utf-8")

        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": build_extraction_prompt(is_first_page)},
                        {
                            "type": "image_url",
                            "image_url": {"url": f"data:image/png;base64,{image_data}"},
                        },
                    ],
                }
            ],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

        if not response.choices:
            return ""
        content = response.choices[0].message.content
        return content if content is not None else ""

    async def extract(self, image_png: bytes, page_num: int, is_first_page: bool) -> ExtractionResult:
        """Extract the table from one page image.

        Failures of the call itself (network, rate limit, API errors) are
        logged and reported as status "failed" so the remaining pages still
        get processed.
        """
        try:
            content = await self._complete(image_png, is_first_page)
        except Exception as e:
            logger.warning(f"Page {page_num}: vision LLM request failed: {e}")
            return ExtractionResult.failed(str(e))

        result = parse_table_response(content)
        if result.status == RESULT_MALFORMED:
            logger.warning(f"Page {page_num}: unusable model response ({result.detail})")
        return result


def create_extractor(cfg: Optional[Config] = None) -> TableExtractor:
    """Build a TableExtractor from configuration (the global config by default)."""
    cfg = cfg or config
    client = get_vision_client(
        cfg.vision_llm_url,
        api_key=cfg.vision_llm_api_key,
        timeout=cfg.vision_llm_timeout,
    )
    return TableExtractor(
        client,
        model=cfg.vision_llm_model,
        temperature=cfg.vision_llm_temperature,
        max_tokens=cfg.vision_llm_max_tokens,
    )
