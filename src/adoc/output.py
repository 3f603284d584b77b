"""Result sink and output writers for crawl results."""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

PREVIEW_CHARS = 200


@dataclass(frozen=True)
class CrawlResult:
    """Structured content of one successfully crawled page."""
    url: str
    title: str
    content: str
    related_links: tuple[str, ...] = ()
    depth: int = 0
    extracted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        data = asdict(self)
        data["related_links"] = list(self.related_links)
        data["extracted_at"] = self.extracted_at.isoformat()
        return data


class OutputFormat(str, Enum):
    JSON = "json"
    PRETTY_JSON = "pretty-json"
    TEXT = "text"


class ResultSink:
    """Collects crawl results until they are serialized."""

    def __init__(self):
        self._results: list[CrawlResult] = []
        self.failed = 0

    def add(self, result: CrawlResult):
        self._results.append(result)

    @property
    def results(self) -> list[CrawlResult]:
        return list(self._results)

    def __len__(self) -> int:
        return len(self._results)

    def __iter__(self):
        return iter(self._results)


def format_for_path(path: str | Path, default: OutputFormat = OutputFormat.PRETTY_JSON) -> OutputFormat:
    """Pick an output format from a file extension."""
    suffix = Path(path).suffix.lower()
    if suffix == ".json":
        return OutputFormat.PRETTY_JSON
    if suffix in (".txt", ".text"):
        return OutputFormat.TEXT
    return default


def _render_text(results: list[CrawlResult], preview: bool) -> str:
    blocks = []
    for result in results:
        lines = [f"Title: {result.title}", f"URL: {result.url}"]
        if preview:
            snippet = result.content[:PREVIEW_CHARS]
            if len(result.content) > PREVIEW_CHARS:
                snippet += "..."
            lines.append(f"Content preview: {snippet}")
            lines.append(f"Related links: {len(result.related_links)}")
        else:
            lines.append("Content:")
            lines.append(result.content)
        blocks.append("\n".join(lines) + "\n\n---\n")
    return "\n".join(blocks)


def render(results: list[CrawlResult], fmt: OutputFormat, preview: bool = False) -> str:
    """Serialize results; one result becomes one record in every format."""
    fmt = OutputFormat(fmt)
    if fmt is OutputFormat.TEXT:
        return _render_text(results, preview)

    records = [result.to_dict() for result in results]
    if fmt is OutputFormat.PRETTY_JSON:
        return json.dumps(records, indent=2, ensure_ascii=False)
    return json.dumps(records, ensure_ascii=False, separators=(",", ":"))


def write_results(results: list[CrawlResult], output_path: str | Path, fmt: OutputFormat | None = None) -> Path:
    """Write results to a file, creating parent directories."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fmt = fmt or format_for_path(output_path)
    output_path.write_text(render(results, fmt), encoding="utf-8")
    return output_path
