import json
import re
from typing import Any, List

JSON_ARRAY_PATTERN = re.compile(r"\[[\s\S]*\]")


class TextProcessor:
    """Parses free-text model answers into raw tag lists"""

    @staticmethod
    def strip_code_fence(text: str) -> str:
        """Unwrap a fenced code block, with or without a language tag"""
        if not text:
            return ""

        text = text.strip()
        if "```json" in text:
            text = text.split("```json", 1)[1].split("```", 1)[0]
        elif "```" in text:
            text = text.split("```", 2)[1]
        return text.strip()

    @staticmethod
    def extract_json_array(text: str) -> Any:
        """
        Parse text as JSON, falling back to the first bracketed substring

        Raises:
            ValueError: if neither the text nor a bracketed substring parses
        """
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            match = JSON_ARRAY_PATTERN.search(text)
            if not match:
                raise ValueError("No JSON array found in model response")
            return json.loads(match.group(0))

    def parse_tag_response(self, content: str) -> List[Any]:
        """Turn the assistant's answer into a list of raw tags"""
        payload = self.extract_json_array(self.strip_code_fence(content))
        if not isinstance(payload, list):
            if not isinstance(payload, str):
                payload = json.dumps(payload, ensure_ascii=False)
            payload = [payload]
        return payload
