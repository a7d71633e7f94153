from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, List, Optional

from ..models import CategoryMap


@dataclass
class ParseResult:
    categories: CategoryMap
    parse_errors: List[str] = field(default_factory=list)
    raw_response: str = ""
    found_object: bool = False

    @property
    def ok(self) -> bool:
        return self.found_object


class ResponseParser:
    """Parse a model reply into a validated CategoryMap."""

    def parse(self, response_text: str) -> ParseResult:
        """
        Extract and validate the first JSON object in the reply.

        Handles:
        - bare JSON objects
        - markdown code fences, with or without a ``json`` tag
        - prose before or after the object
        Non-array values and non-string entries are dropped; names are
        de-duplicated per category, first occurrence wins.
        """
        raw = response_text or ""
        if not raw.strip():
            return ParseResult(categories={}, parse_errors=["Empty response"], raw_response=raw)

        obj = self.extract_first_object(raw)
        if obj is None:
            return ParseResult(categories={}, parse_errors=["No JSON object found"], raw_response=raw)

        categories, errors = self._validate(obj)
        return ParseResult(categories=categories, parse_errors=errors, raw_response=raw, found_object=True)

    def extract_first_object(self, text: str) -> Optional[dict]:
        # Scan in text order; a fenced object is found through its opening brace.
        decoder = json.JSONDecoder()
        start = text.find("{")
        while start != -1:
            try:
                obj, _ = decoder.raw_decode(text, start)
            except json.JSONDecodeError:
                obj = None
            if isinstance(obj, dict):
                return obj
            start = text.find("{", start + 1)
        return None

    def _validate(self, obj: dict) -> tuple[CategoryMap, List[str]]:
        categories: CategoryMap = {}
        errors: List[str] = []
        for name, value in obj.items():
            category = str(name).strip()
            if not category:
                errors.append("Blank category name")
                continue
            if not isinstance(value, list):
                errors.append(f"{category}: value is not an array")
                continue
            names = categories.setdefault(category, [])
            for entry in value:
                repo = self._repo_name(entry)
                if repo is None:
                    errors.append(f"{category}: non-string entry {entry!r}")
                    continue
                if repo not in names:
                    names.append(repo)
        return categories, errors

    @staticmethod
    def _repo_name(entry: Any) -> Optional[str]:
        if not isinstance(entry, str):
            return None
        stripped = entry.strip()
        return stripped or None
