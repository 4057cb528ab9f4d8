# text_severity.py

import re
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup, Comment, Doctype, NavigableString

from interaction_api.data_model import Severity, normalize_ingredient

# Checked top to bottom; the first level with any keyword in the text wins.
# Registry documents are Spanish, so each level carries both languages.
SEVERITY_RULES: List[Tuple[Severity, Tuple[str, ...]]] = [
    (Severity.HIGH, (
        "severe", "contraindicated", "avoid", "high risk", "serious", "life-threatening", "fatal",
        "do not use", "must not",
        "contraindicad", "grave", "evitar", "evitarse", "alto riesgo", "riesgo elevado", "mortal",
        "no se recomienda", "no debe", "no se debe",
    )),
    (Severity.MEDIUM, (
        "caution", "monitor", "adjust dose", "dose adjustment", "moderate",
        "precaución", "precaucion", "vigilar", "monitoriz", "ajustar la dosis", "ajuste de dosis", "moderad",
    )),
    (Severity.LOW, (
        "mild", "minor", "infrequent", "rarely", "unlikely",
        "leve", "menor", "poco frecuente", "infrecuente", "raramente",
    )),
]

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")

_BLOCK_TAGS = {"p", "div", "li", "tr", "table", "ul", "ol", "h1", "h2", "h3", "h4", "h5", "h6"}
_CELL_TAGS = {"td", "th"}
_SKIP_TAGS = {"script", "style"}


def classify_severity(text: Optional[str]) -> Severity:
    lowered = (text or "").lower()
    if not lowered.strip():
        return Severity.UNKNOWN
    for severity, keywords in SEVERITY_RULES:
        if any(k in lowered for k in keywords):
            return severity
    return Severity.UNKNOWN


def split_paragraphs(text: Optional[str]) -> List[str]:
    return [p.strip() for p in _PARAGRAPH_BREAK.split(text or "") if p.strip()]


def extract_relevant_excerpt(text: Optional[str], ingredient: Optional[str]) -> str:
    """First paragraph that mentions the ingredient, or '' if none does."""
    needle = normalize_ingredient(ingredient)
    if not needle:
        return ""
    for paragraph in split_paragraphs(text):
        if needle in paragraph.lower():
            return paragraph
    return ""


def _flush(buffer: List[str], paragraphs: List[str]) -> None:
    for paragraph in split_paragraphs("".join(buffer)):
        text = " ".join(paragraph.split())
        if text:
            paragraphs.append(text)
    buffer.clear()


def _walk(node, buffer: List[str], paragraphs: List[str]) -> None:
    for child in node.children:
        if isinstance(child, (Comment, Doctype)):
            continue
        if isinstance(child, NavigableString):
            buffer.append(str(child))
        elif child.name in _SKIP_TAGS:
            continue
        elif child.name == "br" or child.name in _CELL_TAGS:
            buffer.append(" ")
            _walk(child, buffer, paragraphs)
            buffer.append(" ")
        elif child.name in _BLOCK_TAGS:
            _flush(buffer, paragraphs)
            _walk(child, buffer, paragraphs)
            _flush(buffer, paragraphs)
        else:
            # Inline markup joins without a separator: war<span>farina</span>
            _walk(child, buffer, paragraphs)


def html_to_text(html: Optional[str]) -> str:
    """Flatten a registry HTML section into blank-line separated paragraphs.

    Every text node is kept; block tags start a new paragraph.
    """
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    paragraphs: List[str] = []
    buffer: List[str] = []
    _walk(soup, buffer, paragraphs)
    _flush(buffer, paragraphs)
    return "\n\n".join(paragraphs)
