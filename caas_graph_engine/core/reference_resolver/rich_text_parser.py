"""
RichTextParser: turns CMS_INPUT_DOM / CMS_INPUT_DOMTABLE markup into a tree of
RichTextElement nodes.

Inline formatting tags (b, i, u, ...) do not produce nodes of their own; they
are folded into the `format` list of the text nodes they wrap. Link nodes
carry their template in `data["type"]` and their raw form data (JSON in the
`data` attribute) in `data["data"]`, ready to be mapped like any other set of
data entries.
"""

import json
import logging
import xml.etree.ElementTree as ET
from typing import List, Optional

from .models import RichTextElement

logger = logging.getLogger(__name__)

BLOCK_TAGS = {
    "p": "paragraph",
    "div": "block",
    "ul": "list",
    "ol": "list",
    "li": "listitem",
    "table": "table",
    "tr": "row",
    "td": "cell",
    "th": "cell",
    "br": "linebreak",
}

FORMAT_TAGS = {
    "b": "bold",
    "strong": "bold",
    "i": "italic",
    "em": "italic",
    "u": "underline",
    "sup": "superscript",
    "sub": "subscript",
}

# Named entities the DOM editor emits that XML does not know
HTML_ENTITIES = {
    "&nbsp;": "&#160;",
    "&shy;": "&#173;",
    "&ndash;": "&#8211;",
    "&mdash;": "&#8212;",
}


class RichTextParser:
    """Parses rich-text markup into RichTextElement trees."""

    def parse(self, markup: Optional[str]) -> List[RichTextElement]:
        """
        Parse rich-text markup.

        Args:
            markup: Raw markup as delivered in the entry's value

        Returns:
            Top-level rich-text elements; an empty list for empty or broken markup
        """
        if not markup:
            return []

        source = markup
        for entity, replacement in HTML_ENTITIES.items():
            source = source.replace(entity, replacement)

        try:
            root = ET.fromstring(f"<root>{source}</root>")
        except ET.ParseError as e:
            logger.warning("Could not parse rich text markup: %s", e)
            return []

        return self._convert_children(root, [])

    def _convert_children(self, element: ET.Element, formats: List[str]) -> List[RichTextElement]:
        nodes: List[RichTextElement] = []
        if element.text:
            nodes.extend(self._text_node(element.text, formats))
        for child in element:
            nodes.extend(self._convert_element(child, formats))
            if child.tail:
                nodes.extend(self._text_node(child.tail, formats))
        return nodes

    def _convert_element(self, element: ET.Element, formats: List[str]) -> List[RichTextElement]:
        tag = element.tag.lower()

        if tag in FORMAT_TAGS:
            return self._convert_children(element, formats + [FORMAT_TAGS[tag]])

        if tag == "link":
            return [
                RichTextElement(
                    type="link",
                    content=self._convert_children(element, formats),
                    data={
                        "type": element.get("type", ""),
                        "data": self._link_data(element.get("data")),
                    },
                )
            ]

        if tag in BLOCK_TAGS:
            data = {"ordered": True} if tag == "ol" else {}
            return [RichTextElement(type=BLOCK_TAGS[tag], content=self._convert_children(element, formats), data=data)]

        # Unknown tags are kept as generic blocks so that no content is lost
        return [
            RichTextElement(
                type="block",
                content=self._convert_children(element, formats),
                data={"tag": tag, **element.attrib},
            )
        ]

    def _text_node(self, text: str, formats: List[str]) -> List[RichTextElement]:
        if not text.strip() and "\n" in text:
            return []
        data = {"format": list(formats)} if formats else {}
        return [RichTextElement(type="text", content=text, data=data)]

    def _link_data(self, raw: Optional[str]) -> dict:
        if not raw:
            return {}
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Could not decode rich text link data: %s", e)
            return {}
        return parsed if isinstance(parsed, dict) else {}
