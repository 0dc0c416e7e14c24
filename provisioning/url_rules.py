"""
Alternative source URL generation.

When the primary artifact URL fails, acquisition walks an ordered list of
candidates derived from it. Each rule is data, not code, so new source
hosts can be added through a JSON rules file:

    [
      {"kind": "replace", "match": "/resolve/main/", "replacement": "/resolve/master/"},
      {"kind": "raw_content", "host": "huggingface.co",
       "template": "https://raw.githubusercontent.com/{owner}/{repo}/main/model.onnx"}
    ]

"replace" rules apply only when `requires` (default: `match`) occurs in the
URL. "raw_content" rules derive a URL from the owner/repo coordinates that
follow the host.
"""

import json
import logging
from pathlib import Path
from typing import Iterable, List, Literal, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, TypeAdapter

logger = logging.getLogger(__name__)


class UrlRewriteRule(BaseModel):
    kind: Literal["replace", "raw_content"]
    match: Optional[str] = None
    replacement: Optional[str] = None
    requires: Optional[str] = None
    host: Optional[str] = None
    template: Optional[str] = None

    def apply(self, url: str) -> Optional[str]:
        if self.kind == "replace":
            guard = self.requires or self.match
            if not self.match or self.replacement is None or not guard or guard not in url:
                return None
            return url.replace(self.match, self.replacement)

        parsed = urlparse(url)
        if not self.template or not self.host or parsed.netloc != self.host:
            return None
        parts = [p for p in parsed.path.split("/") if p]
        if len(parts) < 2:
            return None
        return self.template.format(owner=parts[0], repo=parts[1])


DEFAULT_URL_RULES: List[UrlRewriteRule] = [
    UrlRewriteRule(kind="replace", match="/resolve/main/onnx/", replacement="/resolve/main/"),
    UrlRewriteRule(kind="replace", match="/onnx/model.onnx", replacement="/model.onnx",
                   requires="/resolve/main/"),
    UrlRewriteRule(kind="replace", match="/onnx/model.onnx", replacement="/pytorch_model.bin",
                   requires="/resolve/main/"),
    UrlRewriteRule(kind="replace", match="/resolve/main/", replacement="/resolve/master/"),
    UrlRewriteRule(kind="raw_content", host="huggingface.co",
                   template="https://raw.githubusercontent.com/{owner}/{repo}/main/model.onnx"),
    UrlRewriteRule(kind="raw_content", host="huggingface.co",
                   template="https://raw.githubusercontent.com/{owner}/{repo}/master/model.onnx"),
]

_RULES_ADAPTER = TypeAdapter(List[UrlRewriteRule])


def load_url_rules(path: Optional[str]) -> List[UrlRewriteRule]:
    """Load rules from a JSON file, or return the built-in defaults."""
    if not path:
        return list(DEFAULT_URL_RULES)
    try:
        rules = _RULES_ADAPTER.validate_python(json.loads(Path(path).read_text(encoding="utf-8")))
        logger.info(f"Loaded {len(rules)} URL rewrite rules from {path}")
        return rules
    except (OSError, ValueError) as e:
        logger.warning(f"Could not load URL rewrite rules from {path}, using defaults: {e}")
        return list(DEFAULT_URL_RULES)


def generate_alternative_urls(url: str, rules: Iterable[UrlRewriteRule]) -> List[str]:
    """Ordered, de-duplicated candidates, never including the original URL."""
    candidates: List[str] = []
    for rule in rules:
        try:
            candidate = rule.apply(url)
        except (ValueError, KeyError, IndexError) as e:
            logger.warning(f"URL rewrite rule {rule.kind} skipped for {url!r}: {e}")
            continue
        if candidate and candidate != url and candidate not in candidates:
            candidates.append(candidate)
    return candidates
