"""HTML body transformations so links route back through the proxy."""

import re

HTML_CONTENT_TYPE = "text/html"

GB2312_MARKER = "charset=gb2312"
UTF8_MARKER = "charset=utf-8"
# The WHATWG "gb2312" label decodes with GBK, a superset of GB2312
GB2312_CODEC = "gbk"

ABSOLUTE_LINK_PATTERN = re.compile(r'(href|src)="(https?://)')
# Root-relative only: the lookahead rejects protocol-relative "//host" links
ROOT_RELATIVE_LINK_PATTERN = re.compile(r"""((?:href|src|action)=["'])(?=/(?!/))""")
CHARSET_PARAM_PATTERN = re.compile(r";\s*charset=[^;]*", re.IGNORECASE)


def is_html(content_type: str | None) -> bool:
    return bool(content_type) and HTML_CONTENT_TYPE in content_type


def utf8_content_type(content_type: str) -> str:
    """Declare UTF-8 in a Content-Type, replacing any charset it already names."""
    base = CHARSET_PARAM_PATTERN.sub("", content_type).strip()
    return f"{base}; {UTF8_MARKER}"


def decode_html(raw: bytes) -> str:
    """Decode as UTF-8, switching to GB2312 when the document declares it.

    Invalid sequences become replacement characters; a leading BOM is kept as
    text rather than sniffed.
    """
    text = raw.decode("utf-8", errors="replace")
    if GB2312_MARKER in text:
        text = raw.decode(GB2312_CODEC, errors="replace")
        text = text.replace(GB2312_MARKER, UTF8_MARKER, 1)
    return text


def rewrite_absolute_links(text: str, protocol: str, host: str) -> str:
    """Prefix absolute href/src URLs with the proxy address."""
    prefix = f"{protocol}//{host}/"
    return ABSOLUTE_LINK_PATTERN.sub(lambda m: f'{m.group(1)}="{prefix}{m.group(2)}', text)


def rewrite_root_relative_links(text: str, protocol: str, host: str, origin: str) -> str:
    """Point root-relative href/src/action paths at the target origin via the proxy.

    The original leading slash is kept, so ``/logo.png`` becomes
    ``{proxy}/{origin}//logo.png``.
    """
    prefix = f"{protocol}//{host}/{origin}/"
    return ROOT_RELATIVE_LINK_PATTERN.sub(lambda m: m.group(1) + prefix, text)


class HtmlRewriter:
    """Rewrite buffered HTML documents for a given proxy address."""

    def __init__(self, protocol: str, host: str):
        self.protocol = protocol
        self.host = host

    def rewrite(self, raw: bytes, origin: str) -> str:
        """Decode raw and rewrite every proxied link it contains."""
        text = decode_html(raw)
        text = rewrite_absolute_links(text, self.protocol, self.host)
        return rewrite_root_relative_links(text, self.protocol, self.host, origin)
