"""
Content transforms for archive documents.

Converts upstream plain text and HTML into sanitized HTML or Markdown:
- text -> markdown: scrubbed text
- text -> html: scrubbed text rendered as simple HTML, then sanitized
- html -> html: body extracted, sanitized and scrubbed
- html -> markdown: as html -> html, then converted to Markdown
"""

import html
import re

from bs4 import BeautifulSoup, Comment, NavigableString, Tag, UnicodeDammit

from .schemas import MimeType


class ContentError(Exception):
    """Content could not be decoded or transformed."""


_MEDIA_TYPE = re.compile(r"^\s*([\w!#$&^.+-]+/[\w!#$&^.+-]+)\s*(?:;.*)?$")
_CHARSET = re.compile(r";\s*charset\s*=\s*\"?([\w.:-]+)\"?", re.I)

PLAIN_TEXT = "text/plain"


def parse_media_type(content_type: str) -> str:
    match = _MEDIA_TYPE.match(content_type or "")
    if not match:
        raise ContentError(f"failed to parse content mime type {content_type!r}")
    return match.group(1).lower()


def to_unicode(content_type: str, body: bytes) -> str:
    """Decode ``body`` using the declared charset, sniffing when absent."""
    match = _CHARSET.search(content_type or "")
    known = [match.group(1)] if match else []
    dammit = UnicodeDammit(body, known_definite_encodings=known, is_html=not content_type.startswith(PLAIN_TEXT))
    if dammit.unicode_markup is None:
        raise ContentError("failed to decode content to unicode")
    return dammit.unicode_markup.lstrip("\ufeff")


def transform(content_type: str, mime_type: MimeType, body: bytes) -> str:
    """Convert ``body`` (served as ``content_type``) into ``mime_type``."""
    media_type = parse_media_type(content_type)
    text = to_unicode(content_type, body)

    if media_type == PLAIN_TEXT and mime_type == MimeType.MARKDOWN:
        return scrub_text(text)
    if media_type == PLAIN_TEXT:
        return sanitize_html(text_to_html(scrub_text(text)))

    cleaned = scrub_html(sanitize_html(extract_body(normalize_nbsp(text))))
    if mime_type == MimeType.MARKDOWN:
        return html_to_markdown(cleaned)
    return cleaned


# ─────────────────────────────────────────────────────────────
# Plain text
# ─────────────────────────────────────────────────────────────

# Paragraphs marked only by a small indent on the next line
_PARAGRAPH_INDENT = re.compile(r"\n+( {2,4}|\t)\s*")
_CENTERING = re.compile(r"^ {5,}", re.M)
_INDENT = re.compile(r"^[ \t]+", re.M)
_DECORATIVE_HR = re.compile(r"^\s*([-=.*_~`#+] ?){3,}\s*$", re.M)
_SANDWICH_DASH = re.compile(r"^-{3,}\n([^\n]+)\n-{3,}$", re.M)
_SANDWICH_EQUALS = re.compile(r"^={3,}\n([^\n]+)\n={3,}$", re.M)
_TRAILING_WS = re.compile(r"[ \t]+$", re.M)
_EMAIL_HEADERS = re.compile(r"^((?:[A-Za-z][A-Za-z0-9-]*:[^\n]*\n)+)(---\n)?")


def scrub_text(text: str) -> str:
    """Clean up a plain text document into something Markdown renders sensibly."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _wrap_email_headers(text)
    text = _CENTERING.sub("", text)
    text = _PARAGRAPH_INDENT.sub("\n\n", text)
    text = _INDENT.sub("", text)
    text = _SANDWICH_EQUALS.sub(r"# \1", text)
    text = _SANDWICH_DASH.sub(r"## \1", text)
    text = _DECORATIVE_HR.sub("***", text)
    text = _TRAILING_WS.sub("", text)
    return _strip_dialog_dashes(text)


def _wrap_email_headers(text: str) -> str:
    """Collapse a leading block of email headers into a <details> element."""
    trimmed = text.lstrip(" \t\n\r")
    match = _EMAIL_HEADERS.match(trimmed)
    if not match:
        return text

    headers = html.escape(match.group(1).rstrip("\n"), quote=False).replace("\n", "<br>\n")
    rest = trimmed[match.end():].lstrip("\n")
    return (
        '<details class="email-headers">\n<summary>Email headers</summary>\n'
        f"{headers}\n</details>\n\n{rest}"
    )


def _dialog_dash_len(line: str) -> int:
    if len(line) < 2 or line[0] != "-":
        return 0
    if line[1] == " ":
        return 2
    if line[1] == "-":
        return 0
    return 1


def _strip_dialog_dashes(text: str) -> str:
    """Drop leading dashes used as dialog markers rather than list bullets."""
    lines = text.split("\n")

    def neighbour_is_dash(indexes) -> bool:
        for j in indexes:
            if not lines[j].strip():
                continue
            return _dialog_dash_len(lines[j]) > 0
        return False

    prefixes = [_dialog_dash_len(line) for line in lines]
    out = list(lines)
    for idx, strip in enumerate(prefixes):
        if not strip:
            continue
        if neighbour_is_dash(range(idx - 1, -1, -1)) or neighbour_is_dash(range(idx + 1, len(lines))):
            continue
        out[idx] = lines[idx][strip:]
    return "\n".join(out)


def text_to_html(text: str) -> str:
    """Render scrubbed text (a small Markdown subset) as HTML."""
    blocks = []
    for block in re.split(r"\n{2,}", text.strip()):
        if not block:
            continue
        if block.startswith("<details"):
            blocks.append(block)
        elif block == "***":
            blocks.append("<hr>")
        elif block.startswith("## "):
            blocks.append(f"<h2>{_inline(block[3:])}</h2>")
        elif block.startswith("# "):
            blocks.append(f"<h1>{_inline(block[2:])}</h1>")
        else:
            blocks.append(f"<p>{'<br>'.join(_inline(line) for line in block.split(chr(10)))}</p>")
    return "\n".join(blocks)


def _inline(text: str) -> str:
    text = html.escape(text, quote=False)
    text = re.sub(r"\*\*(.+?)\*\*", r"<strong>\1</strong>", text)
    text = re.sub(r"(?<![\w*])[*_](?=\S)(.+?)(?<=\S)[*_](?![\w*])", r"<em>\1</em>", text)
    return text


# ─────────────────────────────────────────────────────────────
# HTML
# ─────────────────────────────────────────────────────────────

ALLOWED_TAGS = {
    "a", "abbr", "acronym", "article", "aside", "b", "bdi", "bdo", "blockquote",
    "br", "caption", "cite", "code", "col", "colgroup", "dd", "del", "details",
    "dfn", "div", "dl", "dt", "em", "h1", "h2", "h3", "h4", "h5", "h6", "hgroup",
    "hr", "i", "ins", "li", "mark", "ol", "p", "pre", "q", "rp", "rt", "ruby",
    "s", "samp", "section", "small", "span", "strike", "strong", "sub", "summary",
    "sup", "table", "tbody", "td", "tfoot", "th", "thead", "time", "tr", "tt",
    "u", "ul", "var", "wbr",
}

# Removed along with their contents
DROPPED_TAGS = {
    "script", "style", "iframe", "object", "embed", "form", "input", "button",
    "select", "textarea", "noscript", "template", "svg", "math", "head", "title",
    "link", "meta", "base",
}

ALLOWED_ATTRS = {
    "a": {"href"},
    "blockquote": {"cite"},
    "q": {"cite"},
    "del": {"cite", "datetime"},
    "ins": {"cite", "datetime"},
    "time": {"datetime"},
    "details": {"open", "class"},
    "td": {"colspan", "rowspan"},
    "th": {"colspan", "rowspan", "scope"},
}

INLINE_TAGS = {
    "a", "abbr", "acronym", "b", "bdi", "bdo", "cite", "code", "dfn", "em", "i",
    "mark", "q", "rp", "rt", "ruby", "s", "samp", "small", "span", "strike",
    "strong", "sub", "sup", "tt", "u", "var",
}

BLOCK_TAGS = {
    "address", "article", "aside", "blockquote", "div", "footer", "header",
    "hgroup", "main", "nav", "p", "section",
}

MAX_CONSECUTIVE_BRS = 2

_NBSP = re.compile("&nbsp;|\xa0", re.I)
_SAFE_URL = re.compile(r"^(https?:|mailto:|#|/|\.|[^:]*$)", re.I)


def normalize_nbsp(markup: str) -> str:
    return _NBSP.sub(" ", markup)


def extract_body(markup: str) -> str:
    """Inner HTML of <body>, or the input unchanged if there is none."""
    soup = BeautifulSoup(markup, "html.parser")
    if soup.body is None:
        return markup
    return soup.body.decode_contents()


def sanitize_html(markup: str) -> str:
    """Strip unsupported elements and attributes."""
    soup = BeautifulSoup(markup, "html.parser")

    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()

    for tag in soup.find_all(list(DROPPED_TAGS)):
        if not tag.decomposed:
            tag.decompose()

    for tag in soup.find_all(True):
        if tag.name not in ALLOWED_TAGS:
            tag.unwrap()
            continue
        allowed = ALLOWED_ATTRS.get(tag.name, set())
        for attr in list(tag.attrs):
            if attr not in allowed:
                del tag[attr]
        _clean_attrs(tag)

    return soup.decode()


def _clean_attrs(tag: Tag):
    if tag.name == "a" and tag.has_attr("href"):
        if not _SAFE_URL.match(tag["href"].strip()):
            del tag["href"]
        elif tag["href"].startswith(("http://", "https://")):
            tag["rel"] = "nofollow noreferrer"
            tag["target"] = "_blank"
    if tag.name == "details":
        if tag.has_attr("class") and tag.get("class") != ["email-headers"]:
            del tag["class"]
        if tag.has_attr("open") and tag["open"].lower() not in ("", "open"):
            del tag["open"]


def scrub_html(markup: str) -> str:
    """Clean up authoring noise: empty inlines, spacer blocks and runs of <br>."""
    soup = BeautifulSoup(markup, "html.parser")

    removed = True
    while removed:
        removed = False
        for tag in soup.find_all(list(INLINE_TAGS)):
            if not tag.decomposed and _is_empty(tag):
                tag.decompose()
                removed = True

    for tag in soup.find_all(list(BLOCK_TAGS)):
        if tag.decomposed:
            continue
        if _is_spacer(tag):
            tag.decompose()
        elif _is_empty(tag):
            tag.replace_with(soup.new_tag("br"))

    _collapse_brs(soup)
    return soup.decode()


def _is_empty(tag: Tag) -> bool:
    if tag.get_text(strip=True):
        return False
    return not tag.find(["img", "br", "hr", "wbr"])


def _is_spacer(tag: Tag) -> bool:
    has_br = False
    for child in tag.children:
        if isinstance(child, NavigableString):
            if child.strip():
                return False
        elif isinstance(child, Tag) and child.name == "br":
            has_br = True
        else:
            return False
    return has_br


def _collapse_brs(soup: BeautifulSoup):
    for br in soup.find_all("br"):
        if br.decomposed:
            continue
        run = [br]
        sibling = br.next_sibling
        while sibling is not None:
            if isinstance(sibling, NavigableString) and not sibling.strip():
                sibling = sibling.next_sibling
                continue
            if isinstance(sibling, Tag) and sibling.name == "br":
                run.append(sibling)
                sibling = sibling.next_sibling
                continue
            break
        for extra in run[MAX_CONSECUTIVE_BRS:]:
            extra.decompose()


# ─────────────────────────────────────────────────────────────
# HTML -> Markdown
# ─────────────────────────────────────────────────────────────

def html_to_markdown(markup: str) -> str:
    """Convert sanitized HTML into CommonMark-flavoured Markdown."""
    soup = BeautifulSoup(markup, "html.parser")
    text = _render_children(soup)
    text = re.sub(r"[ \t]+\n", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip() + "\n" if text.strip() else ""


def _render_children(node) -> str:
    return "".join(_render(child) for child in node.children)


def _render(node) -> str:
    if isinstance(node, Comment):
        return ""
    if isinstance(node, NavigableString):
        return re.sub(r"\s+", " ", str(node))
    if not isinstance(node, Tag):
        return ""

    name = node.name
    if name in ("h1", "h2", "h3", "h4", "h5", "h6"):
        return f"\n\n{'#' * int(name[1])} {_render_children(node).strip()}\n\n"
    if name in ("p", "div", "section", "article", "aside", "hgroup", "details"):
        return f"\n\n{_render_children(node).strip()}\n\n"
    if name == "summary":
        return f"\n\n**{_render_children(node).strip()}**\n\n"
    if name == "br":
        return "  \n"
    if name == "hr":
        return "\n\n---\n\n"
    if name in ("em", "i"):
        inner = _render_children(node).strip()
        return f"_{inner}_" if inner else ""
    if name in ("strong", "b"):
        inner = _render_children(node).strip()
        return f"**{inner}**" if inner else ""
    if name in ("s", "strike", "del"):
        inner = _render_children(node).strip()
        return f"~~{inner}~~" if inner else ""
    if name == "code" and (node.parent is None or node.parent.name != "pre"):
        return f"`{node.get_text()}`"
    if name == "pre":
        return f"\n\n```\n{node.get_text().strip(chr(10))}\n```\n\n"
    if name == "a":
        inner = _render_children(node).strip()
        href = node.get("href")
        if not inner:
            return ""
        return f"[{inner}]({href})" if href else inner
    if name == "blockquote":
        inner = _render_children(node).strip()
        return "\n\n" + "\n".join(f"> {line}".rstrip() for line in inner.splitlines()) + "\n\n"
    if name in ("ul", "ol"):
        items = []
        for n, li in enumerate(node.find_all("li", recursive=False), start=1):
            marker = f"{n}." if name == "ol" else "-"
            items.append(f"{marker} {_render_children(li).strip()}")
        return "\n\n" + "\n".join(items) + "\n\n"
    return _render_children(node)
