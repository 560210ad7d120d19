import re

IMG_TAG_RE = re.compile(
    r'<img\s+(?:[^>]*?\s+)?src="([^"]*)"(?:\s+(?:[^>]*?\s+)?alt="([^"]*)")?[^>]*?/?>',
    re.IGNORECASE,
)
TAG_RE = re.compile(r"<[^>]*>")


def html_to_markdown(text: str) -> str:
    """
    Flattens the inline HTML that READMEs commonly embed.
    <img src="a.png" alt="x"> becomes ![x](a.png); every other tag is dropped.
    """
    if not text:
        return ""
    converted = IMG_TAG_RE.sub(lambda m: f"![{m.group(2) or ''}]({m.group(1)})", text)
    return TAG_RE.sub("", converted)
