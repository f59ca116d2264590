"""Helpers to extract structured data from OpenAI Responses output."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Tuple


def _field(obj: Any, name: str, default: Any = None) -> Any:
	if isinstance(obj, dict):
		return obj.get(name, default)
	return getattr(obj, name, default)


def parse_tool_arguments(response: Any, tool_name: str) -> Dict[str, Any]:
	"""Return the decoded arguments for the specified function call."""
	for item in _field(response, "output", None) or []:
		if _field(item, "type") != "function_call":
			continue
		if _field(item, "name") != tool_name:
			continue
		args = json.loads(_field(item, "arguments", "{}") or "{}")
		if not isinstance(args, dict):
			raise RuntimeError(f"Arguments for '{tool_name}' are not a JSON object.")
		return args
	raise RuntimeError(f"No function_call output for '{tool_name}' found in response.")


def extract_text(response: Any) -> str:
	"""Extract the first output_text entry from the response."""
	for item in _field(response, "output", None) or []:
		if _field(item, "type") != "message":
			continue
		for content in _field(item, "content", None) or []:
			if _field(content, "type") == "output_text":
				return _field(content, "text", "") or ""
	return _field(response, "output_text", "") or ""


def extract_url_citations(response: Any) -> List[Tuple[str, str]]:
	"""Return (title, url) pairs cited by a web-search response, in order, without duplicates."""
	seen = set()
	citations: List[Tuple[str, str]] = []
	for item in _field(response, "output", None) or []:
		if _field(item, "type") != "message":
			continue
		for content in _field(item, "content", None) or []:
			for annotation in _field(content, "annotations", None) or []:
				if _field(annotation, "type") != "url_citation":
					continue
				url = _field(annotation, "url")
				if not url or url in seen:
					continue
				seen.add(url)
				citations.append((_field(annotation, "title") or url, url))
	return citations
