"""
HTML sanitization helpers.

Item HTML is reduced to an allow-list of tags and attributes before it is
stored, and stripped to plain text for the raw output formats.

Responsibility: Allow-list HTML cleaning and text extraction with BeautifulSoup
"""

import re
from typing import Optional
from bs4 import BeautifulSoup, Comment

# Code points XML 1.0 cannot carry: C0 controls except tab, LF and CR, lone surrogates, U+FFFE and U+FFFF
XML_INVALID_CHARS = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")

ALLOWED_TAGS: frozenset[str] = frozenset({
    "a", "abbr", "b", "blockquote", "br", "caption", "code", "dd", "del", "div",
    "dl", "dt", "em", "figcaption", "figure", "h1", "h2", "h3", "h4", "h5", "h6",
    "hr", "i", "img", "ins", "li", "mark", "ol", "p", "pre", "q", "s", "small",
    "span", "strong", "sub", "sup", "table", "tbody", "td", "tfoot", "th",
    "thead", "tr", "u", "ul",
})

# Tags removed together with everything inside them
DROPPED_TAGS: frozenset[str] = frozenset({
    "script", "style", "iframe", "object", "embed", "noscript", "template",
    "form", "input", "button", "select", "textarea", "head", "title", "meta", "link",
})

ALLOWED_ATTRIBUTES: dict[str, frozenset[str]] = {
    "a": frozenset({"href", "title", "rel", "target"}),
    "img": frozenset({"src", "alt", "title", "width", "height"}),
    "td": frozenset({"colspan", "rowspan"}),
    "th": frozenset({"colspan", "rowspan", "scope"}),
    "q": frozenset({"cite"}),
    "blockquote": frozenset({"cite"}),
}

URL_ATTRIBUTES: frozenset[str] = frozenset({"href", "src", "cite"})
ALLOWED_SCHEMES: frozenset[str] = frozenset({"http", "https", "mailto"})


def strip_invalid_xml_chars(text: str) -> str:
    """Drop characters that would make the XML renderings unserializable"""
    return XML_INVALID_CHARS.sub("", text)


def _is_safe_url(value: str) -> bool:
    """Relative URLs and allow-listed schemes only"""
    candidate = "".join(value.split()).lower()
    if ":" not in candidate.split("/", 1)[0]:
        return True
    scheme = candidate.split(":", 1)[0]
    return scheme in ALLOWED_SCHEMES


def sanitize(html: Optional[str]) -> str:
    """
    Clean an HTML fragment against the allow-list.

    Disallowed tags are unwrapped (their text survives), dangerous containers
    such as <script> are removed with their content, attributes are filtered
    per tag and URL attributes must use a safe scheme.

    Args:
        html: Raw HTML fragment (None is treated as empty)

    Returns:
        Sanitized HTML string
    """
    if not html:
        return ""

    soup = BeautifulSoup(strip_invalid_xml_chars(html), "html.parser")

    for comment in soup.find_all(string=lambda node: isinstance(node, Comment)):
        comment.extract()

    for tag in soup.find_all(True):
        if tag.decomposed:
            continue
        if tag.name in DROPPED_TAGS:
            tag.decompose()
            continue
        if tag.name not in ALLOWED_TAGS:
            tag.unwrap()
            continue

        allowed = ALLOWED_ATTRIBUTES.get(tag.name, frozenset())
        for attr in list(tag.attrs):
            value = tag.attrs[attr]
            if attr not in allowed:
                del tag.attrs[attr]
            elif attr in URL_ATTRIBUTES and not _is_safe_url(str(value)):
                del tag.attrs[attr]

    return str(soup).strip()


def strip_html(html: Optional[str]) -> str:
    """Reduce an HTML fragment to whitespace-normalized plain text"""
    if not html:
        return ""
    soup = BeautifulSoup(strip_invalid_xml_chars(html), "html.parser")
    return soup.get_text(" ", strip=True)
